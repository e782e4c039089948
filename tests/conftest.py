"""Pytest fixtures for 89 Progress integration tests.

The Test environment runs against an in-memory SQLite database, created once
per session from the table metadata. Each test runs inside a transaction that
is rolled back afterwards, so tests never see each other's rows.

Usage:
    def test_get_scale(client: TestClient, scale_factory, teacher, auth_headers):
        scale = scale_factory(creator=teacher)
        response = client.get(f"/api/scales/{scale.scale_id}", headers=auth_headers(teacher))
        assert response.status_code == 200
"""

from __future__ import annotations

import datetime
import decimal
import os
import typing as t
from pathlib import Path

import pydantic as p
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

import progress89
from progress89.auth.jwt import JWTManager
from progress89.core import Progress89Container, TimestampProvider
from progress89.model import DeploymentEnvironment, Evaluation, EvaluationStatus, Grade, ScaleWithCriteria, User, \
    UserRole, UserStatus
from progress89.storage import evaluation as evaluation_storage
from progress89.storage import grade as grade_storage
from progress89.storage import scale as scale_storage
from progress89.storage import user as user_storage
from progress89.storage.scale import CriterionCreateParams
from progress89.storage.table import metadata

TEST_JWT_SECRET = "test-jwt-secret-for-integration-tests"
TEST_PASSWORD = "password123"


@pytest.fixture(scope="session")
def container() -> t.Generator[Progress89Container]:
    """Boot the DI container for the test session.

    Uses the Test environment, whose storage configuration points at an
    in-memory SQLite database; the schema is created straight from the
    table metadata.
    """
    ct = Progress89Container()
    root = Path(os.path.dirname(progress89.__file__)).parent

    Progress89Container.boot(
        ct,
        debug=True,
        env=DeploymentEnvironment.Test,
        config_root=p.FileUrl(f"file://{root}/config"),
        override=(),
    )
    metadata.create_all(ct.storage().persistent().engine())

    yield ct

    ct.shutdown_resources()


@pytest.fixture(scope="session")
def app(container: Progress89Container) -> FastAPI:
    """Create the FastAPI application for testing.

    The test environment has no secrets file, so the JWT secret is
    overridden here.
    """
    from progress89.core.config.web import GradebookWebSettings
    from progress89.web.gradebook.main import _create_app  # pyright: ignore[reportPrivateUsage]

    container.secrets.override({"auth": {"jwt": p.Secret(TEST_JWT_SECRET)}})

    container.wire(
        modules=[
            "progress89.web.gradebook.main",
            "progress89.web.gradebook.route.auth",
            "progress89.web.gradebook.route.user",
            "progress89.web.gradebook.route.scale",
            "progress89.web.gradebook.route.evaluation",
            "progress89.web.gradebook.route.student",
            "progress89.web.gradebook.route.report",
            "progress89.auth.middleware",
            "progress89.auth.token",
            "progress89.auth.local",
        ]
    )

    return _create_app(
        config=GradebookWebSettings(**container.config.web.gradebook()),
        env=DeploymentEnvironment.Test,
        root_path=t.cast(Path, container.root()),
    )


@pytest.fixture
def db_session(container: Progress89Container) -> t.Generator[Session]:
    """Provide a database session wrapped in a transaction.

    Uses join_transaction_mode="create_savepoint" so that session.begin()
    in application code creates savepoints inside the outer transaction,
    which is rolled back once the test completes.
    """
    engine = container.storage().persistent().engine()

    connection = engine.connect()
    transaction = connection.begin()

    session = Session(
        bind=connection,
        autobegin=False,
        join_transaction_mode="create_savepoint",
    )

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def client(app: FastAPI, container: Progress89Container, db_session: Session) -> t.Generator[TestClient]:
    """Provide a TestClient whose requests share the test's transactional session."""
    container.storage().persistent().session.override(db_session)

    with TestClient(app) as test_client:
        yield test_client

    container.storage().persistent().session.reset_override()


@pytest.fixture
def user_factory(db_session: Session) -> t.Callable[..., User]:
    """Factory fixture for creating users; every user gets TEST_PASSWORD unless told otherwise.

    Usage:
        def test_something(user_factory):
            student = user_factory(role=UserRole.Student)
    """
    counter = iter(range(1, 10_000))

    def create_user(
        email: str | None = None,
        name: str | None = None,
        role: UserRole = UserRole.Student,
        password: str = TEST_PASSWORD,
        status: UserStatus = UserStatus.Active,
    ) -> User:
        n = next(counter)
        with db_session.begin():
            return user_storage.create(
                email=email or f"{role.value}{n}@example.com",
                name=name or f"{role.value.title()} {n}",
                password=p.Secret(password),
                role=role,
                status=status,
                session=db_session,
            )

    return create_user


@pytest.fixture
def admin(user_factory: t.Callable[..., User]) -> User:
    return user_factory(email="admin@example.com", name="Ada Admin", role=UserRole.Admin)


@pytest.fixture
def teacher(user_factory: t.Callable[..., User]) -> User:
    return user_factory(email="teacher@example.com", name="Theo Teacher", role=UserRole.Teacher)


@pytest.fixture
def student(user_factory: t.Callable[..., User]) -> User:
    return user_factory(email="student@example.com", name="Sam Student", role=UserRole.Student)


def _criterion(
    description: str = "Criterion",
    skill: str = "Skill",
    max_points: str | int = 20,
    coefficient: str = "1.0",
) -> CriterionCreateParams:
    return CriterionCreateParams(
        description=description,
        associated_skill=skill,
        max_points=decimal.Decimal(str(max_points)),
        coefficient=decimal.Decimal(coefficient),
    )


@pytest.fixture
def scale_factory(db_session: Session) -> t.Callable[..., ScaleWithCriteria]:
    """Factory fixture for scales. Without criteria, one worth 20 points with coefficient 1 is created."""

    def create_scale(
        creator: User,
        title: str = "Essay Rubric",
        criteria: t.Sequence[CriterionCreateParams] | None = None,
        is_shared: bool = False,
    ) -> ScaleWithCriteria:
        with db_session.begin():
            return scale_storage.create(
                title=title,
                creator_id=creator.user_id,
                is_shared=is_shared,
                criteria_params=criteria if criteria is not None else [_criterion()],
                session=db_session,
            )

    return create_scale


@pytest.fixture
def evaluation_factory(db_session: Session) -> t.Callable[..., Evaluation]:
    """Factory fixture for evaluations, optionally pre-graded and moved to a status."""

    def create_evaluation(
        teacher: User,
        student: User,
        scale: ScaleWithCriteria,
        title: str = "Midterm",
        date_eval: datetime.date = datetime.date(2026, 3, 15),
        grades: t.Sequence[str | int] = (),
        status: EvaluationStatus = EvaluationStatus.Draft,
    ) -> Evaluation:
        with db_session.begin():
            evaluation = evaluation_storage.create(
                title=title,
                date_eval=date_eval,
                student_id=student.user_id,
                teacher_id=teacher.user_id,
                scale_id=scale.scale_id,
                session=db_session,
            )
            for c, value in zip(scale.criteria, grades):
                grade_storage.create(
                    evaluation_id=evaluation.evaluation_id,
                    criterion_id=c.criterion_id,
                    value=decimal.Decimal(str(value)),
                    session=db_session,
                )
            if status is not EvaluationStatus.Draft:
                evaluation = evaluation_storage.update(evaluation.evaluation_id, status=status, session=db_session)
            return evaluation

    return create_evaluation


@pytest.fixture
def grades_of(db_session: Session) -> t.Callable[[Evaluation], tuple[Grade, ...]]:
    def find_grades(evaluation: Evaluation) -> tuple[Grade, ...]:
        with db_session.begin():
            return grade_storage.find(evaluation_id=evaluation.evaluation_id, session=db_session)

    return find_grades


@pytest.fixture
def jwt_manager(app: FastAPI) -> JWTManager:
    """A token manager sharing the secret the app under test verifies with."""
    return JWTManager(secret_key=p.Secret(TEST_JWT_SECRET), algorithm="HS256")


@pytest.fixture
def auth_headers(jwt_manager: JWTManager) -> t.Callable[[User], dict[str, str]]:
    def headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {jwt_manager.create_access_token(user.user_id, user.role)}"}

    return headers


@pytest.fixture
def utcnow() -> TimestampProvider:
    """Provide a timestamp provider for tests."""
    return lambda: datetime.datetime.now(datetime.UTC)


@pytest.fixture
def criterion_params() -> t.Callable[..., CriterionCreateParams]:
    """`criterion_params("Thesis", "Writing", 20, "0.5")` builds criterion parameters"""
    return _criterion
