import enum

from pydantic import EmailStr

from .base import WithTimestamps
from .id import UserID


class UserRole(enum.Enum):
    Student = "student"
    Teacher = "teacher"
    Admin = "admin"


class UserStatus(enum.Enum):
    Active = "active"
    Inactive = "inactive"


class User(WithTimestamps):
    user_id: UserID
    email: EmailStr
    name: str
    role: UserRole
    status: UserStatus = UserStatus.Active
    description: str | None = None
    password_hash: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status is UserStatus.Active
