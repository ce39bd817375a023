"""Auth-related schemas."""

from __future__ import annotations

import re

from pydantic import BaseModel, Field, field_validator

from factorlens.core.config import settings


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _validate_email(v: str) -> str:
    v = v.strip().lower()
    if not EMAIL_PATTERN.match(v):
        raise ValueError("Email must be a valid address")
    return v


class RegisterRequest(BaseModel):
    """Registration request schema."""

    email: str = Field(..., max_length=255, examples=["investor@example.com"])
    password: str = Field(..., max_length=128, description="Password")

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _validate_email(v)

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, v: str) -> str:
        if len(v) < settings.password_min_length:
            raise ValueError(
                f"Password must be at least {settings.password_min_length} characters"
            )
        return v


class LoginRequest(BaseModel):
    """Login request schema."""

    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _validate_email(v)


class AuthResponse(BaseModel):
    """Token issued on registration or login."""

    token: str = Field(..., description="Bearer token for the Authorization header")
    email: str
