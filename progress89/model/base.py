import datetime
import typing as t

import pydantic as p


class BaseModel(p.BaseModel):
    def model_dump(self, *, by_alias: bool | None = True, **kwargs: t.Any) -> dict[str, t.Any]:
        # invert default by_alias to True
        return super().model_dump(by_alias=by_alias, **kwargs)


class WithCtime(BaseModel):
    create_time: datetime.datetime


class WithMtime(BaseModel):
    update_time: datetime.datetime


class WithTimestamps(WithCtime, WithMtime): ...
