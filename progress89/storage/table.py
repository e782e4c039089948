import datetime
import decimal

from sqlalchemy import false, ForeignKey, func, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, MappedAsDataclass
from sqlalchemy.types import Numeric, Text

from progress89.model import CommentID, CriterionID, EvaluationID, GradeID, ScaleID, UserID

from .type import ShortUUIDKeyType


class base(MappedAsDataclass, DeclarativeBase):
    type_annotation_map = {
        UserID: ShortUUIDKeyType(UserID),
        ScaleID: ShortUUIDKeyType(ScaleID),
        CriterionID: ShortUUIDKeyType(CriterionID),
        EvaluationID: ShortUUIDKeyType(EvaluationID),
        GradeID: ShortUUIDKeyType(GradeID),
        CommentID: ShortUUIDKeyType(CommentID),
    }


metadata = base.metadata


class users(base):
    __tablename__ = "users"

    user_id: Mapped[UserID] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(unique=True)
    name: Mapped[str]
    role: Mapped[str]
    password_hash: Mapped[str]
    status: Mapped[str] = mapped_column(default="active", server_default="active")
    description: Mapped[str | None] = mapped_column(Text, default=None)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


# Scales & Criteria


class scales(base):
    __tablename__ = "scales"

    scale_id: Mapped[ScaleID] = mapped_column(primary_key=True)
    title: Mapped[str]
    creator_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    description: Mapped[str | None] = mapped_column(Text, default=None)
    is_shared: Mapped[bool] = mapped_column(default=False, server_default=false())
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


class criteria(base):
    __tablename__ = "criteria"

    criterion_id: Mapped[CriterionID] = mapped_column(primary_key=True)
    scale_id: Mapped[ScaleID] = mapped_column(ForeignKey("scales.scale_id"), index=True)
    position: Mapped[int]
    description: Mapped[str] = mapped_column(Text)
    associated_skill: Mapped[str]
    max_points: Mapped[decimal.Decimal] = mapped_column(Numeric(8, 2))
    coefficient: Mapped[decimal.Decimal] = mapped_column(Numeric(5, 4))
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


# Evaluations


class evaluations(base):
    __tablename__ = "evaluations"

    evaluation_id: Mapped[EvaluationID] = mapped_column(primary_key=True)
    title: Mapped[str]
    date_eval: Mapped[datetime.date]
    student_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"), index=True)
    teacher_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"), index=True)
    scale_id: Mapped[ScaleID] = mapped_column(ForeignKey("scales.scale_id"), index=True)
    status: Mapped[str] = mapped_column(default="draft", server_default="draft")
    version: Mapped[int] = mapped_column(default=1, server_default="1")
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


class grades(base):
    __tablename__ = "grades"
    __table_args__ = (UniqueConstraint("evaluation_id", "criterion_id"),)

    grade_id: Mapped[GradeID] = mapped_column(primary_key=True)
    evaluation_id: Mapped[EvaluationID] = mapped_column(ForeignKey("evaluations.evaluation_id"), index=True)
    criterion_id: Mapped[CriterionID] = mapped_column(ForeignKey("criteria.criterion_id"), index=True)
    value: Mapped[decimal.Decimal] = mapped_column(Numeric(8, 2))
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


class comments(base):
    __tablename__ = "comments"

    comment_id: Mapped[CommentID] = mapped_column(primary_key=True)
    evaluation_id: Mapped[EvaluationID] = mapped_column(ForeignKey("evaluations.evaluation_id"), index=True)
    teacher_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    text: Mapped[str] = mapped_column(Text)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())
