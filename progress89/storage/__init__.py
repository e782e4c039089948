import importlib
import sys
import types
import typing as t

from sqlalchemy.orm import Session, SessionTransaction

__all__ = [
    "Session",
    "SessionTransaction",
    "ReferencedError",
    "StaleVersionError",
    # Repository modules
    "user",
    "scale",
    "criterion",
    "evaluation",
    "grade",
    "comment",
    "report",
]

if t.TYPE_CHECKING:
    from . import comment, criterion, evaluation, grade, report, scale, user


class ReferencedError(ValueError):
    """A row cannot be removed while other rows still point at it"""


class StaleVersionError(ValueError):
    """A conditional update found the row at a different version than expected"""

    def __init__(self, expected: int, actual: int):
        super().__init__(f"expected version {expected}, found {actual}")
        self.expected = expected
        self.actual = actual


def __getattr__(name: str) -> types.ModuleType:
    if name in __all__:
        module = importlib.import_module(f"{__name__}.{name}")
        setattr(sys.modules[__name__], name, module)
        return module
    raise AttributeError(f"module {__name__} has no attribute {name}")
