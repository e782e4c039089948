"""View models for user management."""

from __future__ import annotations

import datetime

import pydantic as p
from pydantic import EmailStr

from progress89.model import BaseModel, User, UserID, UserRole, UserStatus


class UserResponse(BaseModel):
    user_id: UserID
    email: EmailStr
    name: str
    role: UserRole
    status: UserStatus
    description: str | None = None
    create_time: datetime.datetime

    @classmethod
    def from_model(cls, user: User) -> UserResponse:
        return cls(
            user_id=user.user_id,
            email=user.email,
            name=user.name,
            role=user.role,
            status=user.status,
            description=user.description,
            create_time=user.create_time,
        )


class UserListResponse(BaseModel):
    users: list[UserResponse]
    total: int


class UserCreateRequest(BaseModel):
    email: EmailStr
    name: str = p.Field(min_length=1)
    password: str = p.Field(min_length=8)
    role: UserRole = UserRole.Student
    status: UserStatus = UserStatus.Active
    description: str | None = None


class UserUpdateRequest(BaseModel):
    """Fields left out are unchanged. Role, status and email are admin-only."""

    email: EmailStr | None = None
    name: str | None = p.Field(default=None, min_length=1)
    role: UserRole | None = None
    status: UserStatus | None = None
    description: str | None = None


class ChangePasswordRequest(BaseModel):
    current_password: str | None = None
    new_password: str = p.Field(min_length=8)
