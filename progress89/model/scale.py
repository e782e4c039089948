import decimal

from .base import WithTimestamps
from .id import CriterionID, ScaleID, UserID


class Criterion(WithTimestamps):
    criterion_id: CriterionID
    scale_id: ScaleID
    position: int
    description: str
    associated_skill: str
    max_points: decimal.Decimal
    coefficient: decimal.Decimal


class Scale(WithTimestamps):
    scale_id: ScaleID
    title: str
    description: str | None = None
    creator_id: UserID
    is_shared: bool = False


class ScaleWithCriteria(Scale):
    criteria: list[Criterion] = []
