"""Authentication routes."""

from __future__ import annotations

import datetime
import typing as t

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from progress89.auth import AuthContext, AuthFailure, get_current_user, token, TokenType
from progress89.auth import local as local_auth
from progress89.core import di, TimestampProvider
from progress89.model import User

from ..view.auth import LoginRequest, LoginResponse, RefreshRequest, TokenResponse
from ..view.user import UserResponse

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _issue_tokens(user: User, now: datetime.datetime) -> TokenResponse:
    return TokenResponse(
        access_token=token.create_access_token(user.user_id, user.role),
        refresh_token=token.create_refresh_token(user.user_id, user.role),
        expires_at=now + datetime.timedelta(seconds=token.access_token_lifetime()),
    )


@router.post("/login", operation_id="login")
@di.inject
def login(
    request: LoginRequest,
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    utcnow: TimestampProvider = Depends(di.Provide["utcnow"]),
) -> LoginResponse:
    """Authenticate with email and password and return a token pair."""
    with session.begin():
        result = local_auth.authenticate(request.email, request.password, session=session)

    if not result.success:
        failure = result.failure or AuthFailure.InvalidCredentials
        headers = {"WWW-Authenticate": "Bearer"} if failure.status_code == status.HTTP_401_UNAUTHORIZED else None
        raise HTTPException(status_code=failure.status_code, detail=failure.value, headers=headers)

    user = t.cast(User, result.user)
    return LoginResponse(user=UserResponse.from_model(user), token=_issue_tokens(user, utcnow()))


@router.post("/refresh", operation_id="refresh_token")
@di.inject
def refresh(
    request: RefreshRequest,
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    utcnow: TimestampProvider = Depends(di.Provide["utcnow"]),
) -> TokenResponse:
    """Exchange a refresh token for a new token pair."""
    token_data = token.decode_token(request.refresh_token, TokenType.Refresh)
    if token_data is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    with session.begin():
        user = local_auth.get_user(token_data.user_id, session=session)
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return _issue_tokens(user, utcnow())


@router.post("/logout", operation_id="logout")
def logout(auth: AuthContext = Depends(get_current_user)) -> dict[str, str]:
    """Tokens are stateless; logging out means the client discards them."""
    return {"message": "Logged out successfully"}


@router.get("/me", operation_id="get_current_user")
def get_me(auth: AuthContext = Depends(get_current_user)) -> UserResponse:
    return UserResponse.from_model(auth.user)
