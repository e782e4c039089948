"""View models for authentication endpoints."""

from __future__ import annotations

import datetime

from pydantic import EmailStr

from progress89.model import BaseModel

from .user import UserResponse


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_at: datetime.datetime


class LoginResponse(BaseModel):
    """Response for successful login."""

    user: UserResponse
    token: TokenResponse
