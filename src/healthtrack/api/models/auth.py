"""Pydantic models for registration, login and the current-user endpoint."""

from __future__ import annotations

from pydantic import BaseModel, Field

# Deliberately loose: one "@", no whitespace, a dot in the domain part.
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class RegisterRequest(BaseModel):
    username: str = Field(min_length=3, description="Username must be at least 3 characters")
    email: str = Field(pattern=EMAIL_PATTERN, description="Must provide a valid email")
    password: str = Field(min_length=6, description="Password must be at least 6 characters")


class LoginRequest(BaseModel):
    email: str = Field(pattern=EMAIL_PATTERN, description="Must provide a valid email")
    password: str = Field(min_length=6, description="Password must be at least 6 characters")


class UserOut(BaseModel):
    """Public view of an account (never includes the password hash)."""

    id: int
    username: str
    email: str


class AuthResponse(BaseModel):
    user: UserOut
    token: str


class MeResponse(BaseModel):
    user: UserOut
