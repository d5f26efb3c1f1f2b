"""Password hashing for account credentials."""

from __future__ import annotations

import bcrypt

# bcrypt only looks at the first 72 bytes of the secret
_MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    """Hash plain text password using bcrypt."""
    return bcrypt.hashpw(_encode(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(_encode(plain_password), hashed_password.encode("utf-8"))
    except ValueError:
        return False


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:_MAX_PASSWORD_BYTES]


__all__ = ["hash_password", "verify_password"]
