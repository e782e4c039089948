"""JWT token management for session authentication."""

from __future__ import annotations

import datetime
import enum
import typing as t

import annotated_types as ant
import jwt
import pydantic as p

from progress89.model import UserID, UserRole


class TokenType(enum.Enum):
    Access = "access"
    Refresh = "refresh"


class TokenData(t.NamedTuple):
    """Decoded token data."""

    user_id: UserID
    role: UserRole
    token_type: TokenType
    expires_at: datetime.datetime
    issued_at: datetime.datetime


class JWTManager(object):
    """Manages JWT token creation and validation.

    Access tokens are short-lived and authorize API calls; refresh tokens
    last longer and may only be exchanged for a new access token.
    """

    _secret_key: p.Secret[str]
    _algorithm: t.Literal["HS256", "HS384", "HS512"]
    _access_token_expire_minutes: t.Annotated[int, ant.Gt(0)]
    _refresh_token_expire_days: t.Annotated[int, ant.Gt(0)]

    def __init__(
        self,
        secret_key: p.Secret[str],
        algorithm: t.Literal["HS256", "HS384", "HS512"] = "HS256",
        access_token_expire_minutes: t.Annotated[int, ant.Gt(0)] = 30,
        refresh_token_expire_days: t.Annotated[int, ant.Gt(0)] = 7,
    ) -> None:
        if secret_key is None:
            raise ValueError("a JWT secret is required, set auth.jwt in secrets")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._access_token_expire_minutes = access_token_expire_minutes
        self._refresh_token_expire_days = refresh_token_expire_days

    @property
    def secret_key(self) -> str:
        return self._secret_key.get_secret_value()

    @property
    def algorithm(self) -> str:
        return self._algorithm

    @property
    def access_token_expire_minutes(self) -> int:
        return self._access_token_expire_minutes

    def _encode(
        self, user_id: UserID, role: UserRole, token_type: TokenType, expires_delta: datetime.timedelta
    ) -> str:
        now = datetime.datetime.now(datetime.UTC)
        payload: dict[str, t.Any] = {
            "sub": str(user_id),
            "role": role.value,
            "type": token_type.value,
            "exp": int((now + expires_delta).timestamp()),
            "iat": int(now.timestamp()),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self._algorithm)

    def create_access_token(
        self, user_id: UserID, role: UserRole, expires_delta: datetime.timedelta | None = None
    ) -> str:
        if expires_delta is None:
            expires_delta = datetime.timedelta(minutes=self._access_token_expire_minutes)
        return self._encode(user_id, role, TokenType.Access, expires_delta)

    def create_refresh_token(
        self, user_id: UserID, role: UserRole, expires_delta: datetime.timedelta | None = None
    ) -> str:
        if expires_delta is None:
            expires_delta = datetime.timedelta(days=self._refresh_token_expire_days)
        return self._encode(user_id, role, TokenType.Refresh, expires_delta)

    def decode_token(self, token: str, token_type: TokenType = TokenType.Access) -> TokenData | None:
        """Decode and validate a token.

        Returns:
            TokenData if valid and of the expected type, None otherwise
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self._algorithm])
            data = TokenData(
                user_id=UserID(payload["sub"]),
                role=UserRole(payload["role"]),
                token_type=TokenType(payload.get("type", TokenType.Access.value)),
                expires_at=datetime.datetime.fromtimestamp(payload["exp"], tz=datetime.UTC),
                issued_at=datetime.datetime.fromtimestamp(payload["iat"], tz=datetime.UTC),
            )
        except jwt.InvalidTokenError:
            return None
        except (KeyError, ValueError):
            # well-signed but malformed payload
            return None

        if data.token_type is not token_type:
            return None
        return data
