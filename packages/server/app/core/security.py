"""
Credential and session-token primitives.

- Password hashing (bcrypt)
- Opaque session tokens and their stored digests
- Session cookie settings
"""

from __future__ import annotations

import hashlib
import secrets
from datetime import datetime, timedelta

import bcrypt
from fastapi import Response

from app.core.config import get_settings
from app.models.base import utcnow

settings = get_settings()


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

def hash_password(password: str) -> str:
    """Hash a password using bcrypt with the configured cost factor."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=settings.bcrypt_rounds)).decode()


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode(), hashed.encode())
    except ValueError:
        # Malformed stored hash
        return False


# ---------------------------------------------------------------------------
# Session tokens
# ---------------------------------------------------------------------------

def generate_session_token() -> str:
    """Generate an unguessable session token for the cookie."""
    return secrets.token_urlsafe(32)


def hash_token(token: str) -> str:
    """Digest stored in place of the raw token."""
    return hashlib.sha256(token.encode()).hexdigest()


def session_expiry(now: datetime | None = None) -> datetime:
    return (now or utcnow()) + timedelta(hours=settings.session_ttl_hours)


# ---------------------------------------------------------------------------
# Cookie
# ---------------------------------------------------------------------------

def cookie_kwargs() -> dict:
    return {
        "httponly": True,
        "secure": settings.is_production,
        "samesite": "lax",
        "path": "/",
        "max_age": settings.session_ttl_hours * 3600,
    }


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(key=settings.session_cookie_name, value=token, **cookie_kwargs())


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(settings.session_cookie_name, path="/")
