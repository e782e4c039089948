"""Tests for user management endpoints."""

from __future__ import annotations

import typing as t

from fastapi.testclient import TestClient

from progress89.model import User, UserRole, UserStatus

Headers = t.Callable[[User], dict[str, str]]


class TestCreateUser:
    def test_admin_creates_user(self, client: TestClient, admin: User, auth_headers: Headers) -> None:
        response = client.post(
            "/api/users",
            json={"email": "new.teacher@example.com", "name": "Nora New", "password": "s3cret-pass", "role": "teacher"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "new.teacher@example.com"
        assert data["role"] == "teacher"
        assert data["status"] == "active"
        assert "password" not in data and "password_hash" not in data

        login = client.post("/api/auth/login", json={"email": "new.teacher@example.com", "password": "s3cret-pass"})
        assert login.status_code == 200

    def test_duplicate_email_conflicts(
        self, client: TestClient, admin: User, student: User, auth_headers: Headers
    ) -> None:
        response = client.post(
            "/api/users",
            json={"email": student.email, "name": "Copy", "password": "s3cret-pass"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 409

    def test_short_password_rejected(self, client: TestClient, admin: User, auth_headers: Headers) -> None:
        response = client.post(
            "/api/users",
            json={"email": "short@example.com", "name": "Short", "password": "abc"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 422

    def test_teacher_cannot_create(self, client: TestClient, teacher: User, auth_headers: Headers) -> None:
        response = client.post(
            "/api/users",
            json={"email": "x@example.com", "name": "X", "password": "s3cret-pass"},
            headers=auth_headers(teacher),
        )

        assert response.status_code == 403


class TestListUsers:
    def test_admin_filters_by_role(
        self, client: TestClient, admin: User, teacher: User, student: User, auth_headers: Headers
    ) -> None:
        response = client.get("/api/users", params={"role": "teacher"}, headers=auth_headers(admin))

        assert response.status_code == 200
        assert [u["email"] for u in response.json()["users"]] == [teacher.email]

    def test_teacher_sees_active_students(
        self,
        client: TestClient,
        admin: User,
        teacher: User,
        student: User,
        user_factory: t.Callable[..., User],
        auth_headers: Headers,
    ) -> None:
        user_factory(email="gone@example.com", role=UserRole.Student, status=UserStatus.Inactive)

        response = client.get("/api/users", headers=auth_headers(teacher))

        assert response.status_code == 200
        assert [u["email"] for u in response.json()["users"]] == [student.email]

    def test_teacher_cannot_list_admins(self, client: TestClient, teacher: User, auth_headers: Headers) -> None:
        response = client.get("/api/users", params={"role": "admin"}, headers=auth_headers(teacher))

        assert response.status_code == 403

    def test_student_cannot_list(self, client: TestClient, student: User, auth_headers: Headers) -> None:
        assert client.get("/api/users", headers=auth_headers(student)).status_code == 403


class TestUpdateUser:
    def test_user_edits_own_name(self, client: TestClient, student: User, auth_headers: Headers) -> None:
        response = client.put(
            f"/api/users/{student.user_id}", json={"name": "Samantha Student"}, headers=auth_headers(student)
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Samantha Student"
        assert response.json()["role"] == "student"

    def test_user_cannot_change_own_role(self, client: TestClient, student: User, auth_headers: Headers) -> None:
        response = client.put(f"/api/users/{student.user_id}", json={"role": "admin"}, headers=auth_headers(student))

        assert response.status_code == 403

    def test_admin_changes_role(self, client: TestClient, admin: User, student: User, auth_headers: Headers) -> None:
        response = client.put(f"/api/users/{student.user_id}", json={"role": "teacher"}, headers=auth_headers(admin))

        assert response.status_code == 200
        assert response.json()["role"] == "teacher"


class TestDeactivateUser:
    def test_admin_deactivates(self, client: TestClient, admin: User, student: User, auth_headers: Headers) -> None:
        response = client.delete(f"/api/users/{student.user_id}", headers=auth_headers(admin))

        assert response.status_code == 200
        assert response.json()["status"] == "inactive"
        assert client.get("/api/auth/me", headers=auth_headers(student)).status_code == 401

    def test_cannot_deactivate_self(self, client: TestClient, admin: User, auth_headers: Headers) -> None:
        response = client.delete(f"/api/users/{admin.user_id}", headers=auth_headers(admin))

        assert response.status_code == 400


class TestChangePassword:
    def test_change_own_password(self, client: TestClient, student: User, auth_headers: Headers) -> None:
        response = client.post(
            f"/api/users/{student.user_id}/change-password",
            json={"current_password": "password123", "new_password": "brand-new-pass"},
            headers=auth_headers(student),
        )

        assert response.status_code == 200
        login = client.post("/api/auth/login", json={"email": student.email, "password": "brand-new-pass"})
        assert login.status_code == 200

    def test_wrong_current_password(self, client: TestClient, student: User, auth_headers: Headers) -> None:
        response = client.post(
            f"/api/users/{student.user_id}/change-password",
            json={"current_password": "not-my-password", "new_password": "brand-new-pass"},
            headers=auth_headers(student),
        )

        assert response.status_code == 400

    def test_admin_resets_without_current(
        self, client: TestClient, admin: User, student: User, auth_headers: Headers
    ) -> None:
        response = client.post(
            f"/api/users/{student.user_id}/change-password",
            json={"new_password": "reset-by-admin"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200

    def test_cannot_change_others_password(
        self, client: TestClient, teacher: User, student: User, auth_headers: Headers
    ) -> None:
        response = client.post(
            f"/api/users/{student.user_id}/change-password",
            json={"current_password": "password123", "new_password": "brand-new-pass"},
            headers=auth_headers(teacher),
        )

        assert response.status_code == 403
