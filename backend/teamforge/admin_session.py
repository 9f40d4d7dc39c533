"""Admin login sessions carried in a signed, timestamped cookie."""

from __future__ import annotations

import hmac
import logging
from typing import Optional

from fastapi import Cookie, Depends, HTTPException, status
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from .config import Settings, get_settings


logger = logging.getLogger(__name__)

ADMIN_SESSION_COOKIE = "teamforge_admin"
ADMIN_SESSION_SALT = "teamforge-admin-session"
ADMIN_ROLE = "admin"


class AdminSessionNotConfigured(RuntimeError):
    """Raised when admin sessions are requested without TEAMFORGE_SESSION_SECRET."""


def _serializer(settings: Settings) -> URLSafeTimedSerializer:
    if not settings.session_secret:
        raise AdminSessionNotConfigured("TEAMFORGE_SESSION_SECRET must be configured for admin login.")
    return URLSafeTimedSerializer(settings.session_secret, salt=ADMIN_SESSION_SALT)


def issue_admin_token(settings: Settings) -> str:
    return _serializer(settings).dumps({"role": ADMIN_ROLE})


def read_admin_token(token: Optional[str], settings: Settings) -> bool:
    """True when ``token`` was signed with the current secret and is younger than the session TTL."""
    if not token or not settings.session_secret:
        return False
    try:
        data = _serializer(settings).loads(token, max_age=settings.admin_session_ttl_seconds)
    except SignatureExpired:
        logger.info("Rejected expired admin session cookie")
        return False
    except BadSignature:
        logger.warning("Rejected admin session cookie with a bad signature")
        return False
    return isinstance(data, dict) and data.get("role") == ADMIN_ROLE


def validate_admin_password(password: str, settings: Settings) -> bool:
    expected = settings.admin_password
    if not expected:
        logger.warning("Admin login attempted but TEAMFORGE_ADMIN_PASSWORD is not configured.")
        return False
    return hmac.compare_digest(password.encode("utf-8"), expected.encode("utf-8"))


def require_admin_session(
    token: Optional[str] = Cookie(default=None, alias=ADMIN_SESSION_COOKIE),
    settings: Settings = Depends(get_settings),
) -> None:
    if not read_admin_token(token, settings):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin authentication required.",
        )


__all__ = [
    "ADMIN_SESSION_COOKIE",
    "AdminSessionNotConfigured",
    "issue_admin_token",
    "read_admin_token",
    "require_admin_session",
    "validate_admin_password",
]
