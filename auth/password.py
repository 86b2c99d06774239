"""
Password hashing and verification.

Uses bcrypt for password hashing with automatic
salting and a work factor of 10.
"""

from __future__ import annotations

import bcrypt

BCRYPT_ROUNDS = 10
# bcrypt only reads the first 72 bytes of its input
MAX_PASSWORD_BYTES = 72


def password_too_long(password: str) -> bool:
    return len(password.encode()) > MAX_PASSWORD_BYTES


def hash_password(password: str) -> str:
    """Hash a password with bcrypt (auto-salted)."""
    if password_too_long(password):
        raise ValueError(f"password longer than {MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode()


def verify_password(password: str, password_hash: str) -> bool:
    """
    Constant-time comparison against a bcrypt hash.

    Returns False on mismatch, including passwords no stored hash can
    match; a malformed hash raises ``ValueError``.
    """
    if password_too_long(password):
        return False
    return bcrypt.checkpw(password.encode(), password_hash.encode())
