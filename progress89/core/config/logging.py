import typing as t

import pydantic as p

from .base import BaseSettings

# https://github.com/python/cpython/blob/3.12/Lib/logging/__init__.py#L91-L98, plus TRACE
LogLevel = t.Literal["NOTSET", "TRACE", "DEBUG", "INFO", "WARNING", "WARN", "ERROR", "FATAL", "CRITICAL"]


class FormatterSettings(BaseSettings):
    """
    A console formatter: `base` (usually colorlog.ColoredFormatter) renders the
    line, ExtraFormatter appends the record's extras
    """

    factory: t.Literal["progress89.lib.logging.ExtraFormatter"] = p.Field(alias="()")
    base: str
    format: str | None = None
    datefmt: str | None = None
    log_colors: dict[str, str] = {}
    no_color: bool = False
    indent: bool | None = None


class HandlerSettings(BaseSettings):
    class_: t.Literal["colorlog.StreamHandler", "logging.StreamHandler"] = p.Field(alias="class")
    formatter: str
    level: LogLevel = "NOTSET"
    stream: str = "ext://sys.stderr"


class LoggerSettings(BaseSettings):
    level: LogLevel = "NOTSET"
    propagate: bool = True
    handlers: list[str] = []


class RootLoggerSettings(BaseSettings):
    handlers: list[str]
    level: LogLevel = "WARNING"


class LoggingSettings(BaseSettings):
    """Validated input to logging.config.dictConfig"""

    version: t.Literal[1]
    disable_existing_loggers: bool = False
    formatters: dict[str, FormatterSettings]
    handlers: dict[str, HandlerSettings]
    root: RootLoggerSettings
    loggers: dict[str, LoggerSettings] = {}

    @p.model_validator(mode="after")
    def check_references(self) -> t.Self:
        for name, handler in self.handlers.items():
            if handler.formatter not in self.formatters:
                raise ValueError(f"handler {name!r} uses undefined formatter {handler.formatter!r}")

        used = [("root", h) for h in self.root.handlers]
        used += [(name, h) for name, logger in self.loggers.items() for h in logger.handlers]
        for name, h in used:
            if h not in self.handlers:
                raise ValueError(f"logger {name!r} uses undefined handler {h!r}")
        return self
