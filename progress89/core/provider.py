import datetime
import inspect
import logging.config
import typing as t

from .logging import TRACE, TraceLogLevelLogger

TimestampProvider = t.Callable[..., datetime.datetime]


class LoggingProvider(object):
    Function: t.Final[t.Literal["fn"]] = "fn"
    Module: t.Final[t.Literal["mod"]] = "mod"

    def __init__(self, config: dict[str, t.Any], debug: bool):
        LoggingProvider.create_trace_loglevel()
        logging.config.dictConfig(config)
        if debug:
            self.capture_warnings(True)

    @staticmethod
    def create_trace_loglevel():
        """
        Create a log level TRACE = 5
        """
        logging.setLoggerClass(TraceLogLevelLogger)
        logging.addLevelName(TRACE, "TRACE")

    @classmethod
    def get_logger(
        cls, scope: t.Literal["mod", "fn"] = "mod", name: str | None = None, n_frames: int = 1
    ) -> TraceLogLevelLogger:
        """Logger named for the calling module, or for the calling function when scope is "fn" """
        if name is None:
            frame = inspect.stack()[n_frames]
            name = frame.frame.f_globals["__name__"]
            if scope == cls.Function:
                name = f"{name}.{frame.function}"
        return t.cast(TraceLogLevelLogger, logging.getLogger(name))

    @staticmethod
    def capture_warnings(capture: bool):
        logging.captureWarnings(capture)
