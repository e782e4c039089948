__all__ = [
    "BootConfiguration",
    "di",
    "Progress89Container",
    "LoggingProvider",
    "Settings",
    "Secrets",
    "TimestampProvider",
]


from . import di
from .config import Secrets, Settings
from .container import BootConfiguration, Progress89Container
from .provider import LoggingProvider, TimestampProvider
