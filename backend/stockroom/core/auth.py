"""Authentication dependencies for protected routes."""

from typing import Annotated, List, Optional

from fastapi import Depends, Request

from stockroom.core.config import settings
from stockroom.core.errors import ErrorKind, ServiceError
from stockroom.core.security import decode_access_token
from stockroom.db.session import DbSession
from stockroom.models.user import User


def _candidate_tokens(request: Request) -> List[str]:
    """Tokens sent with the request, in the order they should be tried.

    1. Authorization: Bearer <token> header
    2. access_token cookie (HttpOnly)
    """
    tokens = []
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header.split(" ", 1)[1].strip()
        if token:
            tokens.append(token)
    cookie_token = request.cookies.get(settings.auth_cookie_name)
    if cookie_token:
        tokens.append(cookie_token)
    return tokens


def get_request_token(request: Request) -> Optional[str]:
    """Return the session token sent with the request, if any."""
    tokens = _candidate_tokens(request)
    return tokens[0] if tokens else None


def _payload_from_request(request: Request) -> Optional[dict]:
    # Fall back to the cookie when the Bearer token is invalid
    for token in _candidate_tokens(request):
        payload = decode_access_token(token)
        if payload is not None:
            return payload
    return None


def get_current_user(request: Request, db: DbSession) -> User:
    """Resolve the authenticated user or fail with an unauthorized error."""
    payload = _payload_from_request(request)
    if payload is None:
        raise ServiceError(ErrorKind.UNAUTHORIZED, "Not authenticated")

    user_id = payload.get("sub")
    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        raise ServiceError(ErrorKind.UNAUTHORIZED, "Invalid token payload")

    user = db.get(User, user_id)
    if user is None or not user.is_active:
        raise ServiceError(ErrorKind.UNAUTHORIZED, "User account is disabled")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
