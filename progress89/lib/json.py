from __future__ import annotations

import datetime
import decimal
import enum
import functools
import json as pyjson
import typing as t

import fastapi
import fastapi.encoders
import pydantic as p
import starlette.background

JSONPrimitive = str | int | float | bool | None
JSONValue = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]


@functools.singledispatch
def encode(obj: t.Any) -> JSONValue:
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


@encode.register
def _encode_date(obj: datetime.date) -> str:
    # also covers datetime.datetime
    return obj.isoformat()


@encode.register
def _encode_decimal(obj: decimal.Decimal) -> str:
    # normalize() would turn 20.00 into 2E+1
    return format(obj, "f")


@encode.register
def _encode_enum(obj: enum.Enum) -> JSONValue:
    return obj.value


@encode.register(set)
@encode.register(frozenset)
def _encode_set(obj: t.AbstractSet[t.Any]) -> list[t.Any]:
    return sorted(obj, key=str)


@encode.register
def _encode_model(obj: p.BaseModel) -> dict[str, JSONValue]:
    return obj.model_dump(mode="json")


def encodable(obj: t.Any) -> bool:
    return encode.dispatch(type(obj)) is not encode.dispatch(object)


class JSONEncoder(pyjson.JSONEncoder):
    """stdlib-compatible encoder for decimals, dates, enums and models"""

    def default(self, o: t.Any) -> JSONValue:
        if encodable(o):
            return encode(o)
        return super().default(o)


def dumps(obj: t.Any, *, cls: type[pyjson.JSONEncoder] = JSONEncoder, **kwargs: t.Any) -> str:
    return pyjson.dumps(obj, cls=cls, **kwargs)


def loads(s: str | bytes | bytearray, **kwargs: t.Any) -> t.Any:
    return pyjson.loads(s, **kwargs)


def jsonable_encoder(obj: t.Any) -> JSONValue:
    if isinstance(obj, p.BaseModel):
        return encode(obj)
    custom = {tp: encode for tp in encode.registry if tp is not object}
    return fastapi.encoders.jsonable_encoder(obj, custom_encoder=custom)


class FastAPIJSONResponse(fastapi.responses.JSONResponse):
    """Response class which renders Decimal values without float rounding"""

    def __init__(
        self,
        content: t.Any,
        status_code: int = 200,
        headers: t.Mapping[str, str] | None = None,
        media_type: str | None = None,
        background: starlette.background.BackgroundTask | None = None,
    ):
        super().__init__(
            jsonable_encoder(content),
            status_code=status_code,
            headers=headers,
            media_type=media_type,
            background=background,
        )

    def render(self, content: t.Any) -> bytes:
        return dumps(content, ensure_ascii=False, allow_nan=False, separators=(",", ":")).encode("utf-8")
