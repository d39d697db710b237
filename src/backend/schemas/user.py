"""
User-related Pydantic schemas.
"""

from pydantic import BaseModel, EmailStr, Field

from models.user import User


class SignUpRequest(BaseModel):
    """Schema for sign-up.

    Sign-up is an upsert keyed by email:
    - a one-time code is emailed as a verification link
    - the user stays unverified until the link is followed
    """

    nickname: str = Field(..., min_length=1, max_length=100)
    email: EmailStr


class SignUpResponse(BaseModel):
    """Acknowledgement of a sign-up. The code itself is never returned."""

    user_id: str
    message: str


class TokenResponse(BaseModel):
    """Bearer token issued after verification."""

    user_id: str
    access_token: str
    token_type: str = "bearer"


class AuthCheckResponse(BaseModel):
    user_id: str
    authorized: bool


class UserResponse(BaseModel):
    """Schema for user responses (public-safe)."""

    id: str
    nickname: str
    is_verified: bool

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(id=user.id, nickname=user.nickname, is_verified=user.is_verified)


class UserIdsRequest(BaseModel):
    ids: list[str] = Field(..., min_length=1)
