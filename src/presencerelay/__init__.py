"""presencerelay - In-memory presence and chat relay."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("presence-relay")
except PackageNotFoundError:
    __version__ = "0+local"
from presencerelay.config import RelayConfig
from presencerelay.exceptions import (
    DuplicateMessageError,
    NotFoundError,
    RelayConfigError,
    RelayError,
    RelayRequestError,
    ValidationError,
)
from presencerelay.models import ChatMessage, PresenceRecord, StoreStats
from presencerelay.state import MessageLog, PresenceRegistry, StateStore

__all__ = [
    "__version__",
    "ChatMessage",
    "DuplicateMessageError",
    "MessageLog",
    "NotFoundError",
    "PresenceRecord",
    "PresenceRegistry",
    "RelayConfig",
    "RelayConfigError",
    "RelayError",
    "RelayRequestError",
    "StateStore",
    "StoreStats",
    "ValidationError",
]
