"""The contract between login and a credential store."""

from __future__ import annotations

import enum
import typing as t

from fastapi import status

from progress89.model import User, UserID


class AuthFailure(enum.Enum):
    """Why a login was refused; the value is shown to the user"""

    InvalidCredentials = "Invalid email or password"
    Deactivated = "This account has been deactivated"

    @property
    def status_code(self) -> int:
        if self is AuthFailure.Deactivated:
            return status.HTTP_403_FORBIDDEN
        return status.HTTP_401_UNAUTHORIZED


class AuthResult(t.NamedTuple):
    user: User | None = None
    failure: AuthFailure | None = None

    @property
    def success(self) -> bool:
        return self.failure is None and self.user is not None


class AuthProvider(t.Protocol):
    def authenticate(self, email: str, password: str) -> AuthResult:
        """Check an email and password pair.

        The user is returned with a Deactivated failure when the password was
        right, so callers can tell that case apart from bad credentials.
        """
        ...

    def get_user(self, user_id: UserID) -> User | None: ...
