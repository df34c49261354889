"""Authentication request schemas."""

from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field


class RegisterRequest(BaseModel):
    """User registration request."""

    name: str = Field(max_length=100)
    email: EmailStr
    mobile: str = Field(description="10-digit mobile number")
    password: str = Field(min_length=1, max_length=128)


class LoginRequest(BaseModel):
    """Email/password login request (mock login, no lockout)."""

    email: EmailStr
    password: str
