"""Initial schema for evaluations, scales and grades

Revision ID: a1c3e5f70b29
Revises:
Create Date: 2026-10-18

"""

import typing as t

from alembic import op
from sqlalchemy import false
from sqlalchemy import func as f
from sqlalchemy.schema import Column, ForeignKey, UniqueConstraint
from sqlalchemy.types import Boolean, Date, DateTime, Integer, Numeric, String, Text

# revision identifiers, used by Alembic.
revision: str = "a1c3e5f70b29"
down_revision: str | None = None
branch_labels: str | t.Sequence[str] | None = None
depends_on: str | t.Sequence[str] | None = None


def _timestamps() -> tuple[Column[t.Any], Column[t.Any]]:
    return (
        Column("create_time", DateTime, server_default=f.now(), nullable=False),
        Column("update_time", DateTime, server_default=f.now(), onupdate=f.now(), nullable=False),
    )


def upgrade() -> None:
    op.create_table(
        "users",
        Column("user_id", String(22), primary_key=True),
        Column("email", String, unique=True, nullable=False),
        Column("name", String, nullable=False),
        Column("role", String, nullable=False),
        Column("password_hash", String, nullable=False),
        Column("status", String, server_default="active", nullable=False),
        Column("description", Text, nullable=True),
        *_timestamps(),
    )

    # Scales
    op.create_table(
        "scales",
        Column("scale_id", String(22), primary_key=True),
        Column("title", String, nullable=False),
        Column("creator_id", String(22), ForeignKey("users.user_id"), nullable=False),
        Column("description", Text, nullable=True),
        Column("is_shared", Boolean, server_default=false(), nullable=False),
        *_timestamps(),
    )
    op.create_table(
        "criteria",
        Column("criterion_id", String(22), primary_key=True),
        Column("scale_id", String(22), ForeignKey("scales.scale_id"), nullable=False, index=True),
        Column("position", Integer, nullable=False),
        Column("description", Text, nullable=False),
        Column("associated_skill", String, nullable=False),
        Column("max_points", Numeric(8, 2), nullable=False),
        Column("coefficient", Numeric(5, 4), nullable=False),
        *_timestamps(),
    )

    # Evaluations
    op.create_table(
        "evaluations",
        Column("evaluation_id", String(22), primary_key=True),
        Column("title", String, nullable=False),
        Column("date_eval", Date, nullable=False),
        Column("student_id", String(22), ForeignKey("users.user_id"), nullable=False, index=True),
        Column("teacher_id", String(22), ForeignKey("users.user_id"), nullable=False, index=True),
        Column("scale_id", String(22), ForeignKey("scales.scale_id"), nullable=False, index=True),
        Column("status", String, server_default="draft", nullable=False),
        Column("version", Integer, server_default="1", nullable=False),
        *_timestamps(),
    )
    op.create_table(
        "grades",
        Column("grade_id", String(22), primary_key=True),
        Column("evaluation_id", String(22), ForeignKey("evaluations.evaluation_id"), nullable=False, index=True),
        Column("criterion_id", String(22), ForeignKey("criteria.criterion_id"), nullable=False, index=True),
        Column("value", Numeric(8, 2), nullable=False),
        *_timestamps(),
        UniqueConstraint("evaluation_id", "criterion_id"),
    )
    op.create_table(
        "comments",
        Column("comment_id", String(22), primary_key=True),
        Column("evaluation_id", String(22), ForeignKey("evaluations.evaluation_id"), nullable=False, index=True),
        Column("teacher_id", String(22), ForeignKey("users.user_id"), nullable=False),
        Column("text", Text, nullable=False),
        *_timestamps(),
    )


def downgrade() -> None:
    for table in ("comments", "grades", "evaluations", "criteria", "scales", "users"):
        op.drop_table(table)
