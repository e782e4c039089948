"""Tests for authentication API endpoints."""

from __future__ import annotations

import datetime
import typing as t

import jwt as pyjwt
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from progress89.auth.jwt import JWTManager
from progress89.model import User, UserRole, UserStatus
from progress89.storage import user as user_storage


def login(client: TestClient, email: str, password: str = "password123") -> t.Any:
    return client.post("/api/auth/login", json={"email": email, "password": password})


class TestLogin:
    """Tests for POST /api/auth/login."""

    def test_login_success_returns_token(self, client: TestClient, teacher: User, jwt_manager: JWTManager) -> None:
        response = login(client, "teacher@example.com")

        assert response.status_code == 200
        data = response.json()

        assert data["user"]["email"] == "teacher@example.com"
        assert data["user"]["name"] == "Theo Teacher"
        assert data["user"]["role"] == "teacher"
        assert "password_hash" not in data["user"]

        assert data["token"]["token_type"] == "bearer"
        token_data = jwt_manager.decode_token(data["token"]["access_token"])
        assert token_data is not None
        assert token_data.user_id == teacher.user_id
        assert token_data.role is UserRole.Teacher

    def test_login_invalid_email_returns_401(self, client: TestClient, teacher: User) -> None:
        response = login(client, "nobody@example.com")

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    def test_login_invalid_password_returns_401(self, client: TestClient, teacher: User) -> None:
        response = login(client, "teacher@example.com", "wrongpassword")

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    def test_login_inactive_user_returns_403(self, client: TestClient, user_factory: t.Callable[..., User]) -> None:
        user_factory(email="gone@example.com", status=UserStatus.Inactive)

        response = login(client, "gone@example.com")

        assert response.status_code == 403
        assert response.json()["detail"] == "This account has been deactivated"

    def test_login_inactive_user_wrong_password_returns_401(
        self, client: TestClient, user_factory: t.Callable[..., User]
    ) -> None:
        """A deactivated account is not revealed to someone without its password."""
        user_factory(email="gone@example.com", status=UserStatus.Inactive)

        response = login(client, "gone@example.com", "wrongpassword")

        assert response.status_code == 401


class TestRefresh:
    def test_refresh_issues_new_tokens(self, client: TestClient, student: User, jwt_manager: JWTManager) -> None:
        tokens = login(client, "student@example.com").json()["token"]

        response = client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})

        assert response.status_code == 200
        assert jwt_manager.decode_token(response.json()["access_token"]) is not None

    def test_access_token_cannot_refresh(self, client: TestClient, student: User) -> None:
        tokens = login(client, "student@example.com").json()["token"]

        response = client.post("/api/auth/refresh", json={"refresh_token": tokens["access_token"]})

        assert response.status_code == 401

    def test_refresh_token_cannot_authorize(self, client: TestClient, student: User) -> None:
        tokens = login(client, "student@example.com").json()["token"]

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {tokens['refresh_token']}"})

        assert response.status_code == 401

    def test_refresh_for_deactivated_user_returns_401(
        self, client: TestClient, db_session: Session, student: User, jwt_manager: JWTManager
    ) -> None:
        refresh = jwt_manager.create_refresh_token(student.user_id, student.role)
        with db_session.begin():
            user_storage.deactivate(student.user_id, session=db_session)

        response = client.post("/api/auth/refresh", json={"refresh_token": refresh})

        assert response.status_code == 401


class TestMe:
    def test_me_returns_current_user(
        self, client: TestClient, student: User, auth_headers: t.Callable[[User], dict[str, str]]
    ) -> None:
        response = client.get("/api/auth/me", headers=auth_headers(student))

        assert response.status_code == 200
        assert response.json()["user_id"] == str(student.user_id)
        assert response.json()["role"] == "student"

    def test_missing_token_returns_401(self, client: TestClient) -> None:
        response = client.get("/api/auth/me")

        assert response.status_code == 401

    def test_garbage_token_returns_401(self, client: TestClient) -> None:
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired token"

    def test_expired_token_returns_401(self, client: TestClient, student: User, jwt_manager: JWTManager) -> None:
        token = jwt_manager.create_access_token(
            student.user_id, student.role, expires_delta=datetime.timedelta(minutes=-5)
        )

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_token_signed_with_other_secret_returns_401(self, client: TestClient, student: User) -> None:
        token = pyjwt.encode(
            {"sub": str(student.user_id), "role": "student", "type": "access", "exp": 4102444800, "iat": 0},
            "some-other-secret",
            algorithm="HS256",
        )

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_deactivated_user_token_returns_401(
        self,
        client: TestClient,
        user_factory: t.Callable[..., User],
        auth_headers: t.Callable[[User], dict[str, str]],
    ) -> None:
        user = user_factory(status=UserStatus.Inactive)

        response = client.get("/api/auth/me", headers=auth_headers(user))

        assert response.status_code == 401

    def test_role_is_read_from_the_user_row(
        self,
        client: TestClient,
        student: User,
        jwt_manager: JWTManager,
    ) -> None:
        """A token claiming a stale role still acts with the user's current role."""
        token = jwt_manager.create_access_token(student.user_id, UserRole.Admin)

        response = client.get("/api/reports/overview", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 403


class TestLogout:
    def test_logout(
        self, client: TestClient, student: User, auth_headers: t.Callable[[User], dict[str, str]]
    ) -> None:
        response = client.post("/api/auth/logout", headers=auth_headers(student))

        assert response.status_code == 200
