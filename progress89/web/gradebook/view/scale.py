"""View models for scales and criteria."""

from __future__ import annotations

import datetime
import decimal

import pydantic as p

from progress89.model import BaseModel, Criterion, CriterionID, ScaleID, ScaleWithCriteria, UserID
from progress89.storage.scale import CriterionCreateParams


class CriterionRequest(BaseModel):
    """A criterion as authored; checked by the scale validation rather than here."""

    description: str = ""
    associated_skill: str = ""
    max_points: decimal.Decimal
    coefficient: decimal.Decimal

    def to_params(self) -> CriterionCreateParams:
        return CriterionCreateParams(
            description=self.description.strip(),
            associated_skill=self.associated_skill.strip(),
            max_points=self.max_points,
            coefficient=self.coefficient,
        )


class CriterionEditRequest(CriterionRequest):
    criterion_id: CriterionID | None = None


class ScaleCreateRequest(BaseModel):
    title: str = ""
    description: str | None = None
    is_shared: bool = False
    criteria: list[CriterionRequest] = []


class ScaleUpdateRequest(BaseModel):
    title: str = ""
    description: str | None = None
    is_shared: bool = False
    criteria: list[CriterionEditRequest] = []


class CriterionResponse(BaseModel):
    criterion_id: CriterionID
    scale_id: ScaleID
    position: int
    description: str
    associated_skill: str
    max_points: float
    coefficient: float

    @classmethod
    def from_model(cls, criterion: Criterion) -> CriterionResponse:
        return cls(
            criterion_id=criterion.criterion_id,
            scale_id=criterion.scale_id,
            position=criterion.position,
            description=criterion.description,
            associated_skill=criterion.associated_skill,
            max_points=float(criterion.max_points),
            coefficient=float(criterion.coefficient),
        )


class CriterionWriteResponse(BaseModel):
    criterion: CriterionResponse
    warnings: list[str] = []


class ScaleResponse(BaseModel):
    scale_id: ScaleID
    title: str
    description: str | None = None
    creator_id: UserID
    is_shared: bool
    criteria: list[CriterionResponse]
    coefficient_total: float
    max_points: float
    create_time: datetime.datetime
    update_time: datetime.datetime
    warnings: list[str] = p.Field(default_factory=list)

    @classmethod
    def from_model(cls, scale: ScaleWithCriteria, warnings: list[str] | None = None) -> ScaleResponse:
        return cls(
            scale_id=scale.scale_id,
            title=scale.title,
            description=scale.description,
            creator_id=scale.creator_id,
            is_shared=scale.is_shared,
            criteria=[CriterionResponse.from_model(c) for c in scale.criteria],
            coefficient_total=float(sum((c.coefficient for c in scale.criteria), start=decimal.Decimal(0))),
            max_points=float(sum((c.max_points for c in scale.criteria), start=decimal.Decimal(0))),
            create_time=scale.create_time,
            update_time=scale.update_time,
            warnings=warnings or [],
        )


class ScaleListResponse(BaseModel):
    scales: list[ScaleResponse]
    total: int
