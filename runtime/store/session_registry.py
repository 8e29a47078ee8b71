"""In-memory registry of live sessions.

Maps session_id -> EventChannel. A session id maps to at most one live
channel at any instant; registering an id again replaces the entry and
leaves the previous channel orphaned (its consumer can still drain it, but
producers can no longer reach it).

Every operation takes the registry's own lock, so callers never need to
hold one. Nothing is persisted: sessions do not survive a restart.
"""

import logging
import threading
from typing import Dict, List, Optional

from core.polling.models import DomainEvent
from .event_channel import EventChannel


logger = logging.getLogger(__name__)


class SessionRegistry:
    """Thread-safe session_id -> EventChannel mapping."""

    def __init__(self) -> None:
        self._channels: Dict[str, EventChannel] = {}
        self._lock = threading.Lock()

    def register(self, session_id: str) -> EventChannel:
        """Create a channel for `session_id`, install it and return it."""
        channel = EventChannel(session_id)
        with self._lock:
            previous = self._channels.get(session_id)
            self._channels[session_id] = channel

        if previous is not None:
            logger.warning(
                "[REGISTRY] session_id=%s reconnected while a channel was still "
                "registered; previous channel is orphaned",
                session_id,
            )
        else:
            logger.info("[REGISTRY] Registered session_id=%s", session_id)
        return channel

    def lookup(self, session_id: str) -> Optional[EventChannel]:
        with self._lock:
            return self._channels.get(session_id)

    def remove(self, session_id: str) -> Optional[EventChannel]:
        """Detach and return the channel for `session_id`, if any."""
        with self._lock:
            channel = self._channels.pop(session_id, None)
        if channel is not None:
            logger.info("[REGISTRY] Removed session_id=%s", session_id)
        return channel

    def discard(self, session_id: str, channel: EventChannel) -> bool:
        """Remove the entry only if it is still `channel`.

        Used by consumer-side teardown so that an orphaned channel going
        away does not remove the channel that replaced it.
        """
        with self._lock:
            if self._channels.get(session_id) is not channel:
                return False
            del self._channels[session_id]
        logger.info("[REGISTRY] Discarded session_id=%s", session_id)
        return True

    def push(self, session_id: str, event: DomainEvent) -> bool:
        """Push to the session's current channel; no-op if it is gone."""
        channel = self.lookup(session_id)
        if channel is None:
            return False
        return channel.push(event)

    def session_ids(self) -> List[str]:
        with self._lock:
            return list(self._channels)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._channels

    def __len__(self) -> int:
        with self._lock:
            return len(self._channels)
