import inspect
import json
import logging
import string
import textwrap
import typing as t

import pygments
from pygments.formatters import Terminal256Formatter
from pygments.lexers.data import JsonLexer  # pyright: ignore [reportMissingTypeStubs]
from pygments.style import Style

from progress89.lib.json import encodable, encode, JSONEncoder, JSONValue

from .style import LogStyle

# attributes every LogRecord carries; anything else arrived through `extra=`
ReservedKeys = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "asctime",
    "color_message",
    "message",
}


class _ExtraEncoder(JSONEncoder):
    def default(self, o: t.Any) -> JSONValue:
        return encode(o) if encodable(o) else repr(o)


class ExtraFormatter(logging.Formatter):
    """
    Wraps a base formatter and appends the record's `extra` attributes as a
    JSON object, syntax-highlighted when the handler writes to a TTY
    """

    def __init__(
        self,
        base: type[logging.Formatter],
        format: str | None,
        datefmt: str | None = None,
        indent: bool | None = True,
        pyg_style: type[Style] = LogStyle,
        style: t.Literal["%", "{", "$"] = "%",
        validate: bool = True,
        *,
        defaults: t.Any = None,
        **kwargs: t.Any,
    ):
        self.base = base(format, datefmt=datefmt, style=style, validate=validate, defaults=defaults, **kwargs)
        self.pyg_style = pyg_style
        self.handler: logging.StreamHandler[t.Any] | None = None
        self.indent = bool(indent)

    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        if "\n" in msg:
            # hang continuation lines under the first line of the message
            formatted = self.base.format(record)
            idx = formatted.find(msg)
            indent = " " * len([c for c in formatted[:idx] if c in string.printable])
            line, *lines = msg.splitlines()
            body = textwrap.indent("\n".join(lines), prefix=indent)
            record.msg = record.message = f"{line}\n{body}"
            record.args = None
        message = self.base.format(record)

        extra = {k: v for k, v in record.__dict__.items() if k not in ReservedKeys}
        if not extra:
            return message

        if self.handler is None:
            frame = inspect.currentframe()
            caller = frame.f_back if frame is not None else None
            if caller is not None and isinstance(caller.f_locals.get("self"), logging.Handler):
                self.handler = caller.f_locals["self"]

        js = json.dumps(extra, sort_keys=True, indent=(4 if self.indent else None), cls=_ExtraEncoder)
        if self._colorize():
            hl = pygments.highlight  # pyright: ignore [reportUnknownMemberType, reportUnknownVariableType]
            js = hl(js, JsonLexer(), Terminal256Formatter(style=self.pyg_style), None)
        return message + " " + js.strip()

    def _colorize(self) -> bool:
        if getattr(self.base, "no_color", False):
            return False
        stream = getattr(self.handler, "stream", None)
        return stream is not None and hasattr(stream, "isatty") and stream.isatty()

    def __getattr__(self, name: str) -> t.Any:
        if name == "base":
            raise AttributeError(name)
        return getattr(self.base, name)
