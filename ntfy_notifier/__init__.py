from .credentials import TokenCredentialEnvProvider
from .models import Notification
from .notifier import HTTPNotifier

__all__ = [
    "HTTPNotifier",
    "Notification",
    "TokenCredentialEnvProvider",
]
