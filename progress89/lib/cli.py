from __future__ import annotations

import enum
import pathlib
import typing as t

import click
import pydantic as p
from click import *  # noqa: F401, F403 # pyright: ignore [reportWildcardImportFromLibrary]

# Thin wrapper around Click: `import progress89.lib.cli as click` gives the
# whole click namespace plus the parameter types below.


class EnumType(click.ParamType):
    """specify click params to be members of an enum"""

    def __init__(self, enum: type[enum.Enum]):
        self.enum = enum
        self.name = enum.__name__

    @property
    def values(self) -> list[str]:
        return [e.value for e in self.enum]

    def convert(
        self, value: str | enum.Enum | None, param: click.Parameter | None, ctx: click.Context | None
    ) -> enum.Enum | None:
        if value is None or isinstance(value, self.enum):
            return value

        try:
            return self.enum(value)
        except ValueError:
            self.fail(f"valid {self.name} values {self.values}", param, ctx)

    def __repr__(self) -> str:
        return self.name


class URIParamType(click.ParamType):
    """
    Accept URIs as parameters, promoting bare filesystem paths to `file://`
    URIs

    Arguments:

        - `dir_ok`: (default `False`) if parsing results in `file://` URI,
          accept a directory
        - `file_exists`: (default `True`) if parsing results in `file://` URI,
          enforce that the path referenced exists
    """

    name = "URI OR PATH"

    def __init__(self, dir_ok: bool = False, file_exists: bool = True):
        self.dir_ok = dir_ok
        self.file_exists = file_exists

    def convert(
        self, value: str | pathlib.Path | p.AnyUrl | None, param: click.Parameter | None, ctx: click.Context | None
    ) -> p.FileUrl | p.AnyUrl | None:
        if value is None or isinstance(value, p.AnyUrl):
            return value

        if isinstance(value, pathlib.Path) or "://" not in value:
            path = pathlib.Path(value)
        else:
            u = p.AnyUrl(value)
            if u.scheme != "file":
                return u
            if u.path is None:
                self.fail("file path not specified", param, ctx)
            path = pathlib.Path(u.path)

        if self.file_exists:
            if not path.exists():
                self.fail(f"{value}: no such file or directory", param, ctx)
            if path.is_dir() and not self.dir_ok:
                self.fail("directory path not accepted", param, ctx)
        return p.FileUrl(f"file://{path.absolute()}")
