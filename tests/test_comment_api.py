"""Tests for evaluation comment endpoints."""

from __future__ import annotations

import typing as t

import pytest
from fastapi.testclient import TestClient

from progress89.model import Evaluation, EvaluationStatus, ScaleWithCriteria, User, UserRole

Headers = t.Callable[[User], dict[str, str]]


@pytest.fixture
def evaluation(
    teacher: User,
    student: User,
    scale_factory: t.Callable[..., ScaleWithCriteria],
    evaluation_factory: t.Callable[..., Evaluation],
) -> Evaluation:
    return evaluation_factory(teacher, student, scale_factory(creator=teacher))


def test_add_edit_delete_comment(
    client: TestClient, teacher: User, evaluation: Evaluation, auth_headers: Headers
) -> None:
    headers = auth_headers(teacher)

    response = client.post(
        f"/api/evaluations/{evaluation.evaluation_id}/comments", json={"text": "  Solid thesis  "}, headers=headers
    )
    assert response.status_code == 201
    comment = response.json()
    assert comment["text"] == "Solid thesis"
    assert comment["teacher_id"] == str(teacher.user_id)

    response = client.put(f"/api/comments/{comment['comment_id']}", json={"text": "Cite sources"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["text"] == "Cite sources"

    response = client.get(f"/api/evaluations/{evaluation.evaluation_id}/comments", headers=headers)
    assert [c["text"] for c in response.json()] == ["Cite sources"]

    response = client.delete(f"/api/comments/{comment['comment_id']}", headers=headers)
    assert response.status_code == 204
    assert client.get(f"/api/evaluations/{evaluation.evaluation_id}/comments", headers=headers).json() == []


def test_empty_comment_rejected(client: TestClient, teacher: User, evaluation: Evaluation, auth_headers: Headers) -> None:
    response = client.post(
        f"/api/evaluations/{evaluation.evaluation_id}/comments", json={"text": "   "}, headers=auth_headers(teacher)
    )

    assert response.status_code == 400
    assert response.json()["field"] == "text"


def test_comment_on_archived_evaluation(
    client: TestClient,
    teacher: User,
    student: User,
    scale_factory: t.Callable[..., ScaleWithCriteria],
    evaluation_factory: t.Callable[..., Evaluation],
    auth_headers: Headers,
) -> None:
    evaluation = evaluation_factory(
        teacher, student, scale_factory(creator=teacher), grades=[10], status=EvaluationStatus.Archived
    )

    response = client.post(
        f"/api/evaluations/{evaluation.evaluation_id}/comments", json={"text": "Well done"}, headers=auth_headers(teacher)
    )

    assert response.status_code == 201


def test_other_teacher_cannot_comment_or_edit(
    client: TestClient,
    teacher: User,
    evaluation: Evaluation,
    user_factory: t.Callable[..., User],
    auth_headers: Headers,
) -> None:
    other = user_factory(role=UserRole.Teacher)
    comment = client.post(
        f"/api/evaluations/{evaluation.evaluation_id}/comments", json={"text": "Good"}, headers=auth_headers(teacher)
    ).json()

    response = client.post(
        f"/api/evaluations/{evaluation.evaluation_id}/comments", json={"text": "Mine"}, headers=auth_headers(other)
    )
    assert response.status_code == 403

    response = client.put(f"/api/comments/{comment['comment_id']}", json={"text": "Edited"}, headers=auth_headers(other))
    assert response.status_code == 403


def test_admin_can_edit_any_comment(
    client: TestClient, admin: User, teacher: User, evaluation: Evaluation, auth_headers: Headers
) -> None:
    comment = client.post(
        f"/api/evaluations/{evaluation.evaluation_id}/comments", json={"text": "Good"}, headers=auth_headers(teacher)
    ).json()

    response = client.put(f"/api/comments/{comment['comment_id']}", json={"text": "Great"}, headers=auth_headers(admin))

    assert response.status_code == 200
    assert response.json()["teacher_id"] == str(teacher.user_id)
