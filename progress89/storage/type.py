import typing as t

from sqlalchemy.engine import Dialect
from sqlalchemy.sql.type_api import TypeDecorator
from sqlalchemy.types import String

from progress89.model.id import KeyLength, ShortUUIDKey

TKey = t.TypeVar("TKey", bound=ShortUUIDKey)


class ShortUUIDKeyType(TypeDecorator[TKey]):
    """Persist only the shortuuid part of a key; the prefix is implied by the column"""

    impl = String
    cache_ok = True

    def __init__(self, key_type: type[TKey]):
        self.key_type = key_type
        super().__init__(KeyLength)

    def process_bind_param(self, value: TKey | str | None, dialect: Dialect) -> str | None:
        if value is None:
            return None
        if not isinstance(value, self.key_type):
            value = self.key_type(value)
        return value.key

    def process_result_value(self, value: str | None, dialect: Dialect) -> TKey | None:
        if value is not None:
            return self.key_type(key=value)
        return value
