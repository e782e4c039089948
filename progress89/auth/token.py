"""Token helpers bound to the container's JWT manager."""

from __future__ import annotations

from progress89.core import di
from progress89.model import UserID, UserRole

from .jwt import JWTManager, TokenData, TokenType


@di.inject
def create_access_token(
    user_id: UserID, role: UserRole, manager: JWTManager = di.Provide["auth.jwt_manager"]
) -> str:
    return manager.create_access_token(user_id, role)


@di.inject
def create_refresh_token(
    user_id: UserID, role: UserRole, manager: JWTManager = di.Provide["auth.jwt_manager"]
) -> str:
    return manager.create_refresh_token(user_id, role)


@di.inject
def decode_token(
    token: str,
    token_type: TokenType = TokenType.Access,
    manager: JWTManager = di.Provide["auth.jwt_manager"],
) -> TokenData | None:
    return manager.decode_token(token, token_type)


@di.inject
def access_token_lifetime(manager: JWTManager = di.Provide["auth.jwt_manager"]) -> int:
    """Access token lifetime in seconds"""
    return manager.access_token_expire_minutes * 60
