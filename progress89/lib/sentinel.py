from __future__ import annotations

import typing as t


class _Sentinel(object):
    _instances: t.ClassVar[dict[type, _Sentinel]] = {}

    def __new__(cls) -> t.Self:
        if cls not in _Sentinel._instances:
            _Sentinel._instances[cls] = super().__new__(cls)
        return t.cast(t.Self, _Sentinel._instances[cls])

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"

    def __bool__(self) -> bool:
        return False


class NotReady(_Sentinel):
    """Placeholder for container values which are only known after boot"""


class NotSet(_Sentinel):
    """Marks an update parameter as omitted, for fields where None is meaningful"""
