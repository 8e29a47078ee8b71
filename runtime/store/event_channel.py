"""Per-session event buffer feeding one Server-Sent Events stream.

Any number of producer tasks may `push()` events; exactly one consumer
drains them through `stream()`, in push order. Events pushed before the
consumer attaches are buffered.

Lifecycle:

- `complete()` ends the stream once the buffered events are drained.
- When the consumer goes away (client disconnect, cancelled response task,
  or normal end of stream) the channel closes itself and fires the
  registered cleanup callbacks exactly once.
- After the channel is closed, `push()` is a silent no-op.

The channel is meant to be used from a single asyncio event loop.
"""

import asyncio
import logging
from typing import AsyncIterator, Callable, List

from core.polling.models import DomainEvent
from exceptions.exceptions import ChannelAlreadyConsumedException


logger = logging.getLogger(__name__)

# Queued by complete() to wake the consumer.
_END_OF_STREAM = object()


class EventChannel:
    """FIFO channel of DomainEvent for a single session.

    Parameters
    ----------
    session_id:
        The session this channel belongs to (used for logging only).
    """

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False
        self._consumer_attached = False
        self._cleanup_callbacks: List[Callable[[], None]] = []
        self._cleaned_up = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        """Number of buffered items not yet drained by the consumer."""
        return self._queue.qsize()

    def push(self, event: DomainEvent) -> bool:
        """Buffer `event` for the consumer.

        Returns False (and drops the event) if the channel is closed.
        """
        if self._closed:
            logger.debug(
                "[SSE] Dropping %s for closed channel session_id=%s",
                event.kind.value,
                self.session_id,
            )
            return False
        self._queue.put_nowait(event)
        return True

    def complete(self) -> None:
        """Signal that no more events will be produced."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_END_OF_STREAM)

    def add_cleanup(self, callback: Callable[[], None]) -> None:
        """Register a callback fired once when the consumer detaches."""
        self._cleanup_callbacks.append(callback)

    def stream(self) -> AsyncIterator[DomainEvent]:
        """Return the async iterator for the (single) consumer."""
        if self._consumer_attached:
            raise ChannelAlreadyConsumedException(self.session_id)
        self._consumer_attached = True
        return self._drain()

    async def _drain(self) -> AsyncIterator[DomainEvent]:
        try:
            while True:
                item = await self._queue.get()
                if item is _END_OF_STREAM:
                    return
                yield item
        finally:
            self._closed = True
            self._run_cleanups()

    def _run_cleanups(self) -> None:
        if self._cleaned_up:
            return
        self._cleaned_up = True
        for callback in self._cleanup_callbacks:
            try:
                callback()
            except Exception:
                logger.exception(
                    "[SSE] Cleanup callback failed for session_id=%s", self.session_id
                )
