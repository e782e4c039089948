"""Authentication dependencies for FastAPI routes."""

from __future__ import annotations

import typing as t

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from progress89.core import di
from progress89.grading.actor import Actor, Capability
from progress89.model import User, UserRole

from . import token as token_auth
from . import local as local_auth
from .jwt import TokenData

bearer_scheme = HTTPBearer(auto_error=False)


class AuthContext(t.NamedTuple):
    """Current authentication context."""

    user: User
    actor: Actor
    token_data: TokenData


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


@di.inject
def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> AuthContext:
    """Dependency to get the current authenticated user.

    Raises:
        HTTPException 401: If no token is provided, the token is invalid, or
            the user no longer exists or has been deactivated
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")

    token_data = token_auth.decode_token(credentials.credentials)
    if token_data is None:
        raise _unauthorized("Invalid or expired token")

    with session.begin():
        user = local_auth.get_user(token_data.user_id, session=session)
    if user is None:
        raise _unauthorized("User not found")
    if not user.is_active:
        raise _unauthorized("This account has been deactivated")

    # the role is read from the user row, not the token, so role changes apply at once
    return AuthContext(user=user, actor=Actor.from_user(user), token_data=token_data)


def require_role(*allowed_roles: UserRole) -> t.Callable[..., AuthContext]:
    """Dependency factory to require specific roles.

    Usage:
        @router.get("/admin")
        def admin_route(auth: AuthContext = Depends(require_role(UserRole.Admin))):
            ...
    """

    def check_role(auth: AuthContext = Depends(get_current_user)) -> AuthContext:
        if auth.actor.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{auth.actor.role.value}' not authorized for this resource",
            )
        return auth

    return check_role


def require_capability(capability: Capability) -> t.Callable[..., AuthContext]:
    def check_capability(auth: AuthContext = Depends(get_current_user)) -> AuthContext:
        if not auth.actor.can(capability):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not authorized for this resource",
            )
        return auth

    return check_capability


require_admin = require_role(UserRole.Admin)
require_staff = require_role(UserRole.Teacher, UserRole.Admin)
