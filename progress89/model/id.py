from __future__ import annotations

import typing as t

import pydantic as p
import pydantic_core.core_schema as core_schema
import shortuuid

KeyLength: t.Final[int] = 22


class ShortUUIDKey(str):
    """
    String identifier of the form `<prefix><separator><shortuuid>`, e.g.
    `eval$CXc85b4rqinB7s5J52TRYb`. Only the 22-character key is persisted;
    the prefix makes identifiers self-describing on the wire.
    """

    prefix: t.ClassVar[str]
    separator: t.ClassVar[str]

    def __init_subclass__(cls, prefix: str, separator: str = "$", **kwargs: t.Any):
        super().__init_subclass__(**kwargs)
        if len(prefix) < 4:
            raise TypeError(f"{cls.__name__}: prefix must have at least 4 characters")
        if len(separator) != 1:
            raise TypeError(f"{cls.__name__}: separator must be a single character")
        cls.prefix = prefix
        cls.separator = separator

    def __new__(cls, s: str | None = None, /, key: str | None = None) -> t.Self:
        """
        s must be a valid key in and of itself (i.e. prefixed already)
        key must be the key-part only (i.e. a shortuuid)

        if key is present, prefix it and use it without validation (fast path
            for marshaling)
        if neither is present, a new key is generated
        """
        if key is None:
            if s is not None:
                lpre = len(cls.prefix) + len(cls.separator)
                if not s.startswith(cls.prefix + cls.separator):
                    raise ValueError(f"invalid {cls.__name__}: key must begin with {cls.prefix}{cls.separator}")
                if len(s) != KeyLength + lpre:
                    raise ValueError(f"invalid {cls.__name__}: key must have length {KeyLength}")
                alphabet = shortuuid.get_alphabet()
                if any((c not in alphabet) for c in s[lpre:]):
                    raise ValueError(f"invalid {cls.__name__}: key must comprise only {alphabet}")
                return super().__new__(cls, s)
            key = shortuuid.uuid()
        return super().__new__(cls, cls.separator.join((cls.prefix, key)))

    @classmethod
    def validate_str(cls, v: str) -> ShortUUIDKey:
        return v if isinstance(v, cls) else cls(v)

    @classmethod
    def __get_pydantic_json_schema__(cls, src: t.Any, handler: p.GetJsonSchemaHandler) -> p.json_schema.JsonSchemaValue:
        return {"type": "string", "pattern": f"^{cls.prefix}\\{cls.separator}[0-9A-Za-z]{{{KeyLength}}}$"}

    @classmethod
    def __get_pydantic_core_schema__(cls, src: t.Any, handler: p.GetCoreSchemaHandler) -> core_schema.CoreSchema:
        from_str_schema = core_schema.no_info_after_validator_function(cls.validate_str, core_schema.str_schema())
        return core_schema.json_or_python_schema(
            json_schema=from_str_schema,
            python_schema=core_schema.union_schema([core_schema.is_instance_schema(cls), from_str_schema]),
            serialization=core_schema.plain_serializer_function_ser_schema(str.__str__),
        )

    @property
    def key(self) -> str:
        return self[len(self.prefix) + len(self.separator) :]

    def __hash__(self) -> int:
        return str.__hash__(self)

    def __str__(self) -> str:
        return str.__str__(self)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.key!s}>"


# fmt: off
class UserID(ShortUUIDKey, prefix="user"): ...
class ScaleID(ShortUUIDKey, prefix="scale"): ...
class CriterionID(ShortUUIDKey, prefix="crit"): ...
class EvaluationID(ShortUUIDKey, prefix="eval"): ...
class GradeID(ShortUUIDKey, prefix="grade"): ...
class CommentID(ShortUUIDKey, prefix="comment"): ...
# fmt: on
