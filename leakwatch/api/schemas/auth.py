"""
Pydantic schemas for Authentication API.
"""

from pydantic import EmailStr, Field

from leakwatch.api.schemas.base import CamelCaseModel
from leakwatch.api.schemas.users import UserResponse


class LoginRequest(CamelCaseModel):
    """Login request with email and password."""

    email: EmailStr
    password: str = Field(..., min_length=6)


class RegisterRequest(CamelCaseModel):
    """Self-registration of a new reporter."""

    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)
    display_name: str | None = Field(default=None, max_length=255)


class TokenResponse(CamelCaseModel):
    """JWT token response."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds


class RefreshRequest(CamelCaseModel):
    """Token refresh request."""

    refresh_token: str


class LoginResponse(TokenResponse):
    """Login/registration response with tokens and the user's profile."""

    user: UserResponse
