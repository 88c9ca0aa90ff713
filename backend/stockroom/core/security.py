"""Security utilities: password hashing and JWT session tokens."""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
import jwt
from jwt.exceptions import PyJWTError

from stockroom.core.config import settings

logger = logging.getLogger(__name__)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a hash.

    Uses bcrypt's built-in timing-safe comparison.
    """
    try:
        return bcrypt.checkpw(
            plain_password.encode('utf-8'),
            hashed_password.encode('utf-8')
        )
    except ValueError as e:
        logger.warning(f"Password verification error: {e}")
        return False


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt."""
    return bcrypt.hashpw(
        password.encode('utf-8'),
        bcrypt.gensalt()
    ).decode('utf-8')


def create_access_token(data: dict[str, Any], expires_delta: timedelta | None = None) -> str:
    """Create a JWT session token with a unique JTI so it can be revoked."""
    to_encode = data.copy()
    now = datetime.now(timezone.utc)

    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode.update({
        "exp": expire,
        "iat": now,
        "jti": secrets.token_urlsafe(16),
    })
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Decode and validate a JWT token. Returns None when invalid or revoked."""
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
            options={"require_exp": True}
        )
    except PyJWTError as e:
        logger.debug(f"JWT decode error: {e}")
        return None

    jti = payload.get("jti")
    if jti and _is_token_revoked(jti):
        logger.debug(f"Token {jti} has been revoked")
        return None
    return payload


def revoke_token(token: str) -> bool:
    """Invalidate a token until its natural expiry (logout)."""
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
            options={"require_exp": True, "verify_exp": False}
        )
    except PyJWTError:
        return False

    jti = payload.get("jti")
    if not jti:
        return False

    now = datetime.now(timezone.utc)
    _prune_revoked_tokens(now)

    exp = payload.get("exp", 0)
    ttl = max(int(exp - now.timestamp()), 60)
    _revoked_tokens[jti] = now + timedelta(seconds=ttl)
    return True


def _prune_revoked_tokens(now: datetime) -> None:
    """Forget revoked tokens that have expired anyway."""
    expired = [jti for jti, expiry in _revoked_tokens.items() if expiry <= now]
    for jti in expired:
        del _revoked_tokens[jti]


def _is_token_revoked(jti: str) -> bool:
    expiry = _revoked_tokens.get(jti)
    if expiry:
        if datetime.now(timezone.utc) < expiry:
            return True
        del _revoked_tokens[jti]
    return False


# In-process revocation list (cleared on restart)
_revoked_tokens: Dict[str, datetime] = {}


# ---------------------------------------------------------------------------
# Cookie configuration
# ---------------------------------------------------------------------------
COOKIE_SECURE = not settings.debug  # Secure=True in production
COOKIE_SAMESITE = "lax"
ACCESS_TOKEN_MAX_AGE = settings.access_token_expire_minutes * 60  # in seconds
