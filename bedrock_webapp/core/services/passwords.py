"""
Random credential generation.
"""

from __future__ import annotations

import secrets
import string

_ALPHABET = string.ascii_letters + string.digits


def generate_password(length: int = 16) -> str:
    """Return a random alphanumeric password.

    Alphanumeric only, so the value survives shell, SQL and dotfile
    quoting unchanged.
    """
    if length < 8:
        raise ValueError("Password length must be at least 8")
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def generate_salt(length: int = 64) -> str:
    """Return a URL-safe random string for framework auth keys and salts."""
    return secrets.token_urlsafe(length)[:length]
