"""
BaseConnector — abstract interface for third-party identity providers.

A connector knows how to send a user to the provider's consent screen
and how to turn whatever the provider hands back (an authorization code
or an access token) into a verified email address.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List


class BaseConnector(ABC):
    """Abstract base for all OAuth2 identity connectors."""

    # ── Identity ────────────────────────────────────────────────────────
    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Unique slug: 'google'."""
        ...

    @property
    @abstractmethod
    def scopes(self) -> List[str]:
        """OAuth scopes requested on the consent screen."""
        ...

    # ── OAuth flow ──────────────────────────────────────────────────────

    @abstractmethod
    def get_auth_url(self, state: str) -> str:
        """
        Build the provider's OAuth2 authorization URL.

        Parameters
        ----------
        state : str
            Signed, short-lived CSRF value echoed back on the callback.
        """
        ...

    @abstractmethod
    async def verify_authorization_code(self, code: str) -> str:
        """
        Exchange an authorization code and return the verified email.

        Raises ``AuthError("oauth verification failed")`` on any failure.
        """
        ...

    @abstractmethod
    async def verify_access_token(self, claimed_email: str, access_token: str) -> str:
        """
        Introspect ``access_token`` and return its email.

        Raises ``AuthError("token mismatch")`` when the token belongs to a
        different email than ``claimed_email``.
        """
        ...

    # ── Helpers ─────────────────────────────────────────────────────────

    def is_configured(self) -> bool:
        """Return True if client id / secret are present."""
        return True
