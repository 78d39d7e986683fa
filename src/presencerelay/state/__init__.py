"""State/store layer.

This package is the single owner of the relay's in-memory state: the
presence registry and the chat message log.  Transport code only ever
talks to :class:`StateStore` and only ever receives copies.
"""

from presencerelay.state.log import MessageLog
from presencerelay.state.registry import PresenceRegistry
from presencerelay.state.store import StateStore

__all__ = ["MessageLog", "PresenceRegistry", "StateStore"]
