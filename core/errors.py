"""
Error taxonomy shared by the identity flow and the HTTP layer.

Every error carries the HTTP status it maps to; ``main.create_app``
installs the handlers that turn them into JSON bodies.
"""

from __future__ import annotations


class AppError(Exception):
    """Base for all expected, request-level failures."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AppError):
    """Malformed or missing input."""

    status_code = 400


class ConflictError(AppError):
    """A unique key (email, phone, refId) is already bound."""

    status_code = 400


class AuthError(AppError):
    """Bad credentials, invalid token or OAuth mismatch."""

    status_code = 401


class ConfigError(AppError):
    """Required process configuration is missing."""

    status_code = 500


class StoreError(AppError):
    """Backing-store failure. The message is logged, never returned."""

    status_code = 500
