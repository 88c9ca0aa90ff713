"""Authentication routes."""

import logging

from fastapi import APIRouter, HTTPException, Request, Response, status

from stockroom.core.auth import CurrentUser, get_request_token
from stockroom.core.config import settings
from stockroom.core.rate_limit import limiter
from stockroom.core.security import (
    ACCESS_TOKEN_MAX_AGE,
    COOKIE_SAMESITE,
    COOKIE_SECURE,
    create_access_token,
    get_password_hash,
    revoke_token,
    verify_password,
)
from stockroom.db.session import DbSession
from stockroom.models.user import User
from stockroom.schemas.auth import LoginRequest, RegisterRequest, Token, UserResponse

logger = logging.getLogger("auth")

router = APIRouter()


def _issue_session(response: Response, user: User) -> Token:
    token = create_access_token(data={"sub": str(user.id), "username": user.username})
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        max_age=ACCESS_TOKEN_MAX_AGE,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite=COOKIE_SAMESITE,
        path="/",
    )
    return Token(access_token=token, user=UserResponse.model_validate(user))


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
def register(request: Request, response: Response, body: RegisterRequest, db: DbSession):
    """Create a user account and start a session for it."""
    existing = db.query(User).filter(User.username == body.username).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username already taken",
        )

    user = User(username=body.username, password_hash=get_password_hash(body.password))
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info(f"Registered user {user.username} (ID: {user.id})")
    return _issue_session(response, user)


@router.post("/login", response_model=Token)
@limiter.limit("5/minute")
def login(request: Request, response: Response, body: LoginRequest, db: DbSession):
    """Authenticate a user and return a JWT token (also set as a cookie)."""
    client_ip = request.client.host if request.client else "unknown"
    user = db.query(User).filter(User.username == body.username.strip()).first()

    if not user or not verify_password(body.password, user.password_hash):
        logger.warning(f"Failed login attempt for username: {body.username} from IP: {client_ip}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )
    if not user.is_active:
        logger.warning(f"Login attempt for inactive user: {user.username} (ID: {user.id}) from IP: {client_ip}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User account is inactive",
        )

    logger.info(f"Successful login: {user.username} (ID: {user.id}) from IP: {client_ip}")
    return _issue_session(response, user)


@router.post("/logout")
@limiter.limit("30/minute")
def logout(request: Request, response: Response):
    """End the session: revoke the token and clear the cookie."""
    token = get_request_token(request)
    if token:
        revoke_token(token)
    response.delete_cookie(
        key=settings.auth_cookie_name,
        path="/",
        secure=COOKIE_SECURE,
        httponly=True,
        samesite=COOKIE_SAMESITE,
    )
    return {"ok": True}


@router.get("/me", response_model=UserResponse)
@limiter.limit("60/minute")
def me(request: Request, current_user: CurrentUser):
    """Get the current user."""
    return current_user
