"""Authentication schemas."""

from datetime import datetime

from pydantic import Field, field_validator

from stockroom.schemas.common import CamelModel


class LoginRequest(CamelModel):
    """Login request body."""

    username: str = Field(..., min_length=1, max_length=150)
    password: str = Field(..., min_length=1, max_length=128)


class RegisterRequest(CamelModel):
    """Registration request body."""

    username: str = Field(..., min_length=1, max_length=150)
    password: str = Field(..., min_length=6, max_length=128)

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("username is required")
        return v


class UserResponse(CamelModel):
    """Public view of a user account."""

    id: int
    username: str
    is_active: bool
    created_at: datetime


class Token(CamelModel):
    """JWT token response."""

    access_token: str
    token_type: str = "bearer"
    user: UserResponse
