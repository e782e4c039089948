"""User management routes."""

from __future__ import annotations

import pydantic as p
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from progress89.auth import AuthContext, get_current_user, require_admin
from progress89.core import di
from progress89.grading import Capability
from progress89.lib import NotSet
from progress89.model import UserID, UserRole, UserStatus
from progress89.storage import user as user_storage

from ..view.user import ChangePasswordRequest, UserCreateRequest, UserListResponse, UserResponse, \
    UserUpdateRequest

router = APIRouter(prefix="/api/users", tags=["users"])


def _forbidden(detail: str = "Not authorized for this resource") -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def _email_taken(email: str, session: Session, user_id: UserID | None = None) -> bool:
    existing = user_storage.get(email=email, session=session)
    return existing is not None and existing.user_id != user_id


@router.get("", operation_id="list_users")
@di.inject
def list_users(
    role: UserRole | None = Query(None),
    user_status: UserStatus | None = Query(None, alias="status"),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> UserListResponse:
    """Admins list anyone; teachers may list students to assign evaluations."""
    if not auth.actor.can(Capability.ManageUsers):
        if not auth.actor.can(Capability.ListStudents) or role not in (None, UserRole.Student):
            raise _forbidden()
        role, user_status = UserRole.Student, UserStatus.Active

    with session.begin():
        users = user_storage.find(role=role, status=user_status, session=session)
    return UserListResponse(users=[UserResponse.from_model(u) for u in users], total=len(users))


@router.post("", operation_id="create_user", status_code=status.HTTP_201_CREATED)
@di.inject
def create_user(
    request: UserCreateRequest,
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> UserResponse:
    with session.begin():
        if _email_taken(request.email, session):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
        user = user_storage.create(
            email=request.email,
            name=request.name.strip(),
            password=p.Secret(request.password),
            role=request.role,
            status=request.status,
            description=request.description,
            session=session,
        )
    return UserResponse.from_model(user)


@router.get("/{user_id}", operation_id="get_user")
@di.inject
def get_user(
    user_id: UserID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> UserResponse:
    with session.begin():
        user = user_storage.get(user_id=user_id, session=session)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    if auth.actor.can(Capability.ManageUsers) or user.user_id == auth.actor.user_id:
        return UserResponse.from_model(user)
    if auth.actor.can(Capability.ListStudents) and user.role is UserRole.Student:
        return UserResponse.from_model(user)
    raise _forbidden()


@router.put("/{user_id}", operation_id="update_user")
@di.inject
def update_user(
    user_id: UserID,
    request: UserUpdateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> UserResponse:
    """Users edit their own name and description; admins edit everything."""
    is_admin = auth.actor.can(Capability.ManageUsers)
    if not is_admin:
        if user_id != auth.actor.user_id:
            raise _forbidden()
        if request.email is not None or request.role is not None or request.status is not None:
            raise _forbidden("Only admins may change email, role or status")

    fields = request.model_fields_set
    with session.begin():
        if request.email is not None and _email_taken(request.email, session, user_id):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
        try:
            user = user_storage.update(
                user_id,
                email=request.email if request.email is not None else NotSet(),
                name=request.name.strip() if request.name is not None else NotSet(),
                role=request.role if request.role is not None else NotSet(),
                status=request.status if request.status is not None else NotSet(),
                description=request.description if "description" in fields else NotSet(),
                session=session,
            )
        except KeyError:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found") from None
    return UserResponse.from_model(user)


@router.delete("/{user_id}", operation_id="deactivate_user")
@di.inject
def deactivate_user(
    user_id: UserID,
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> UserResponse:
    """Users are deactivated rather than deleted, since evaluations refer to them."""
    if user_id == auth.actor.user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot deactivate yourself")
    with session.begin():
        try:
            user = user_storage.deactivate(user_id, session=session)
        except KeyError:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found") from None
    return UserResponse.from_model(user)


@router.post("/{user_id}/change-password", operation_id="change_password")
@di.inject
def change_password(
    user_id: UserID,
    request: ChangePasswordRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> dict[str, str]:
    """The current password is required, except for an admin resetting someone else's."""
    is_self = user_id == auth.actor.user_id
    if not (is_self or auth.actor.can(Capability.ManageUsers)):
        raise _forbidden()

    with session.begin():
        user = user_storage.get(user_id=user_id, session=session)
        if user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        if is_self and not user_storage.check_password(user, request.current_password or ""):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")
        user_storage.update(user_id, password=p.Secret(request.new_password), session=session)
    return {"message": "Password changed"}
