"""Request/response schemas for authentication endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import EmailStr, Field, field_validator

from arcticcare.schemas import CamelModel


class RegisterRequest(CamelModel):
    """Email registration request."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)
    name: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return v.lower().strip()

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            msg = "Nome é obrigatório"
            raise ValueError(msg)
        return v


class LoginRequest(CamelModel):
    """Login with email + password."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return v.lower().strip()


class ChangePasswordRequest(CamelModel):
    """Change password (requires current password)."""

    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=1, max_length=128)


class ProfileUpdateRequest(CamelModel):
    """Update own profile fields."""

    name: str | None = Field(None, min_length=1, max_length=128)
    avatar: str | None = Field(None, max_length=2048)


class UserResponse(CamelModel):
    """Private user profile returned to the account owner."""

    id: int
    email: str
    name: str
    avatar: str | None = None
    role: str
    points: int
    level: int
    current_streak: int
    longest_streak: int
    last_active_at: datetime
    created_at: datetime


class AuthResponse(CamelModel):
    """Token response returned after successful auth."""

    message: str
    user: UserResponse
    token: str
    token_type: str = "bearer"
    expires_in: int
