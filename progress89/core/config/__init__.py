__all__ = [
    "AuthSettings",
    "GradebookWebSettings",
    "LoggingSettings",
    "Secrets",
    "Settings",
    "SQLSettings",
    "StorageSettings",
    "WebSettings",
]


from .logging import LoggingSettings
from .secrets import Secrets
from .settings import Settings
from .storage import SQLSettings, StorageSettings
from .web import AuthSettings, GradebookWebSettings, WebSettings
