"""
auth — user authentication module.

Provides:
  • JWT issuing & verification (``TokenIssuer``)
  • Password hashing (bcrypt, work factor 10)
  • Signed OAuth state values
  • Register / login / Google OAuth / session API routes
"""
