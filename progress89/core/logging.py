import logging
import typing as t

TRACE: t.Final[int] = 5


class TraceLogLevelLogger(logging.Logger):
    def trace(self, message: str, *args: t.Any, **kwargs: t.Any):
        if self.isEnabledFor(TRACE):
            self._log(TRACE, message, args, **kwargs)
