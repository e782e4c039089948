from __future__ import annotations

import typing as t

import bcrypt
import pydantic as p
import sqlalchemy as sqla

from progress89.core import di
from progress89.lib import NotSet
from progress89.model import User, UserID, UserRole, UserStatus

from . import Session
from .table import users


def hash_password(password: p.Secret[str]) -> str:
    return bcrypt.hashpw(password.get_secret_value().encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def check_password(user: User, password: str) -> bool:
    if not user.password_hash:
        return False
    return bcrypt.checkpw(password.encode("utf-8"), user.password_hash.encode("utf-8"))


@t.overload
def get(*, user_id: UserID, session: Session = ...) -> User | None: ...


@t.overload
def get(*, email: str, session: Session = ...) -> User | None: ...


def get(
    *,
    user_id: UserID | None = None,
    email: str | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> User | None:
    """Get a user by ID or email.

    Exactly one of user_id or email must be provided.
    """
    if (user_id is None) == (email is None):
        raise ValueError("Exactly one of user_id or email must be provided")

    if user_id is not None:
        stmt = sqla.select(users.__table__).where(users.user_id == user_id)
    else:
        stmt = sqla.select(users.__table__).where(sqla.func.lower(users.email) == t.cast(str, email).lower())

    row = session.execute(stmt).mappings().one_or_none()
    return User(**row) if row is not None else None


def find(
    *,
    role: UserRole | None = None,
    status: UserStatus | None = None,
    user_ids: t.Collection[UserID] | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[User, ...]:
    """Find users matching criteria, ordered by name."""
    stmt = sqla.select(users.__table__)
    if role is not None:
        stmt = stmt.where(users.role == role.value)
    if status is not None:
        stmt = stmt.where(users.status == status.value)
    if user_ids is not None:
        stmt = stmt.where(users.user_id.in_(list(user_ids)))
    stmt = stmt.order_by(users.name, users.email)
    return tuple(User(**row) for row in session.execute(stmt).mappings())


def create(
    *,
    email: str,
    name: str,
    password: p.Secret[str],
    role: UserRole,
    status: UserStatus = UserStatus.Active,
    description: str | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> User:
    """Create a new user.

    Password is hashed internally using bcrypt.
    """
    user = users(
        user_id=UserID(),
        email=email,
        name=name,
        role=role.value,
        password_hash=hash_password(password),
        status=status.value,
        description=description,
    )
    session.add(user)
    session.flush()
    return get(user_id=user.user_id, session=session)  # type: ignore[return-value]


def update(
    user_id: UserID,
    *,
    email: str | NotSet = NotSet(),
    name: str | NotSet = NotSet(),
    password: p.Secret[str] | NotSet = NotSet(),
    role: UserRole | NotSet = NotSet(),
    status: UserStatus | NotSet = NotSet(),
    description: str | None | NotSet = NotSet(),
    session: Session = di.Provide["storage.persistent.session"],
) -> User:
    """Update a user.

    Uses NotSet sentinel for parameters where None is a valid update value.

    Raises:
        KeyError: If user_id does not correspond to a user
    """
    values: dict[str, t.Any] = {}
    if not isinstance(email, NotSet):
        values["email"] = email
    if not isinstance(name, NotSet):
        values["name"] = name
    if not isinstance(password, NotSet):
        values["password_hash"] = hash_password(password)
    if not isinstance(role, NotSet):
        values["role"] = role.value
    if not isinstance(status, NotSet):
        values["status"] = status.value
    if not isinstance(description, NotSet):
        values["description"] = description

    if not values:
        # No-op update to verify user exists
        values["user_id"] = user_id

    result = session.execute(sqla.update(users).where(users.user_id == user_id).values(**values))
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"User {user_id} not found")

    session.flush()
    return get(user_id=user_id, session=session)  # type: ignore[return-value]


def deactivate(user_id: UserID, *, session: Session = di.Provide["storage.persistent.session"]) -> User:
    """Users are never deleted, since evaluations and comments keep referring to them."""
    return update(user_id, status=UserStatus.Inactive, session=session)
