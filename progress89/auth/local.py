"""Local authentication against bcrypt password hashes in the users table."""

from __future__ import annotations

from sqlalchemy.orm import Session

from progress89.core import di
from progress89.model import User, UserID
from progress89.storage import user as user_storage

from .provider import AuthFailure, AuthResult


class LocalAuthProvider(object):
    def __init__(self, session: Session) -> None:
        self._session = session

    def authenticate(self, email: str, password: str) -> AuthResult:
        user = user_storage.get(email=email, session=self._session)
        if user is None or not user_storage.check_password(user, password):
            return AuthResult(failure=AuthFailure.InvalidCredentials)
        if not user.is_active:
            return AuthResult(user=user, failure=AuthFailure.Deactivated)
        return AuthResult(user=user)

    def get_user(self, user_id: UserID) -> User | None:
        return user_storage.get(user_id=user_id, session=self._session)


@di.inject
def authenticate(
    email: str, password: str, session: Session = di.Provide["storage.persistent.session"]
) -> AuthResult:
    return LocalAuthProvider(session).authenticate(email, password)


@di.inject
def get_user(user_id: UserID, session: Session = di.Provide["storage.persistent.session"]) -> User | None:
    return LocalAuthProvider(session).get_user(user_id)
