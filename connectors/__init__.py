"""
connectors — third-party identity providers.

Each provider subclasses BaseConnector and turns an authorization code
or an access token into a verified email address.
"""
