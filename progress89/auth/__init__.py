"""Authentication utilities."""

__all__ = [
    "AuthContext",
    "AuthFailure",
    "AuthProvider",
    "AuthResult",
    "JWTManager",
    "LocalAuthProvider",
    "TokenData",
    "TokenType",
    "get_current_user",
    "require_admin",
    "require_capability",
    "require_role",
    "require_staff",
]

from .jwt import JWTManager, TokenData, TokenType
from .local import LocalAuthProvider
from .middleware import AuthContext, get_current_user, require_admin, require_capability, require_role, \
    require_staff
from .provider import AuthFailure, AuthProvider, AuthResult
