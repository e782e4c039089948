__all__ = ["AuthContainer", "BootConfiguration", "Progress89Container", "StorageContainer"]

from .auth import AuthContainer
from .progress89 import BootConfiguration, Progress89Container
from .storage import StorageContainer
