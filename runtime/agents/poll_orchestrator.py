"""PollOrchestrator implementation.

Responsible for:
- validating that a session is connected before starting anything
- calling the external start operation
- driving one poll chain per session: wait, poll status, classify, push
- tearing chains down when the session's consumer goes away

Each chain is a single asyncio task. Delays are `await sleep(...)` timer
suspensions, and the next status call is only issued after the previous
result has been handled, so at most one status call per chain is in flight.

Chain state machine:

    PENDING --start ok--> ACTIVE(0) --IN_PROGRESS--> ACTIVE(n+1) ...
    PENDING --start failed--> TERMINATED (ERROR)
    ACTIVE(n) --> TERMINATED (COMPLETED | FAILED | REJECTED | ERROR | TIMEOUT)
    PENDING / ACTIVE --disconnect--> CANCELLED

TERMINATED and CANCELLED are absorbing: no further external calls or
events are produced.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional

from core.api.inquiry_client import InquiryBackend
from core.polling.classifier import ack_event, classify_status, error_event, timeout_event
from core.polling.delay_schedule import DelaySchedule
from core.polling.models import DomainEvent, EventKind
from exceptions.exceptions import (
    ChainAlreadyActiveException,
    ExternalCallException,
    SessionNotFoundException,
)
from ..models.api_models import InquiryRequest
from ..store.event_channel import EventChannel
from ..store.session_registry import SessionRegistry


logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class ChainStatus(str, Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    TERMINATED = "TERMINATED"
    CANCELLED = "CANCELLED"


@dataclass
class PollChain:
    """Run state of one start + poll sequence for a (session, tracking id)."""

    session_id: str
    tracking_id: str
    attempt_index: int = 0
    status: ChainStatus = ChainStatus.PENDING
    outcome: Optional[EventKind] = None
    task: Optional[asyncio.Task] = field(default=None, repr=False, compare=False)

    @property
    def is_running(self) -> bool:
        return self.status in (ChainStatus.PENDING, ChainStatus.ACTIVE)


class PollOrchestrator:
    """Session lifecycle + poll chain driver.

    Parameters
    ----------
    registry:
        SessionRegistry owning the session_id -> EventChannel mapping.
    backend:
        External inquiry API (see core.api.inquiry_client.InquiryBackend).
    schedule:
        Delay schedule, parsed once at configuration load.
    sleep:
        Coroutine used for the delay before each status call. Defaults to
        asyncio.sleep; tests inject a recording no-op.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        backend: InquiryBackend,
        schedule: DelaySchedule,
        *,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.registry = registry
        self.backend = backend
        self.schedule = schedule
        self._sleep = sleep
        # One chain per session; the latest one is kept for inspection.
        self._chains: Dict[str, PollChain] = {}

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def connect(self, session_id: str) -> EventChannel:
        """Register a new channel for `session_id` and wire its teardown."""
        channel = self.registry.register(session_id)
        channel.add_cleanup(lambda: self._on_consumer_detached(session_id, channel))
        return channel

    def disconnect(self, session_id: str) -> bool:
        """Complete and remove the session's channel. Idempotent."""
        channel = self.registry.remove(session_id)
        self.cancel_chain(session_id)
        if channel is None:
            return False
        channel.complete()
        logger.info("[SSE] Disconnected session_id=%s", session_id)
        return True

    def _on_consumer_detached(self, session_id: str, channel: EventChannel) -> None:
        # An orphaned channel going away must not tear down its replacement.
        if self.registry.discard(session_id, channel):
            logger.info("[SSE] Consumer detached for session_id=%s", session_id)
            self.cancel_chain(session_id)

    # ------------------------------------------------------------------
    # Chains
    # ------------------------------------------------------------------

    def start_external_process(self, session_id: str, request: InquiryRequest) -> PollChain:
        """Start the external process for a connected session.

        Must be called from a running event loop. Returns immediately with
        the PENDING chain; the start call and polling run in a background
        task.

        Raises
        ------
        SessionNotFoundException
            If no channel is registered for `session_id`. No external call
            is made.
        ChainAlreadyActiveException
            If the session's previous chain is still running.
        """
        if self.registry.lookup(session_id) is None:
            raise SessionNotFoundException(session_id)

        existing = self._chains.get(session_id)
        if existing is not None and existing.is_running:
            raise ChainAlreadyActiveException(session_id, existing.tracking_id)

        chain = PollChain(session_id=session_id, tracking_id=request.tracking_id)
        self._chains[session_id] = chain
        chain.task = asyncio.create_task(
            self._run(chain, request),
            name=f"poll-chain:{session_id}:{request.tracking_id}",
        )
        logger.info(
            "[POLL] Chain created for session_id=%s tracking_id=%s",
            session_id,
            request.tracking_id,
        )
        return chain

    async def _run(self, chain: PollChain, request: InquiryRequest) -> None:
        try:
            await self._start(chain, request)
            while chain.status is ChainStatus.ACTIVE:
                await self.step(chain)
        except asyncio.CancelledError:
            if chain.is_running:
                chain.status = ChainStatus.CANCELLED
            logger.info(
                "[POLL] Chain cancelled for session_id=%s tracking_id=%s at attempt %s",
                chain.session_id,
                chain.tracking_id,
                chain.attempt_index,
            )
            raise
        except Exception as e:
            logger.exception(
                "[POLL] Unexpected error for session_id=%s tracking_id=%s",
                chain.session_id,
                chain.tracking_id,
            )
            if chain.is_running:
                self._terminate(chain, error_event(chain.tracking_id, f"Exception: {e}"))

    async def _start(self, chain: PollChain, request: InquiryRequest) -> None:
        try:
            ack_text = await self.backend.start(chain.tracking_id, request.to_payload())
        except ExternalCallException as e:
            logger.error(
                "[POLL] Failed to call start API for tracking_id=%s: %s",
                chain.tracking_id,
                e,
            )
            self._terminate(chain, error_event(chain.tracking_id, f"Start API failed: {e.detail}"))
            return

        if chain.status is not ChainStatus.PENDING:
            return

        logger.info("[POLL] Received ACK from start API: %s", ack_text)
        self._emit(chain, ack_event(chain.tracking_id))
        chain.status = ChainStatus.ACTIVE

    async def step(self, chain: PollChain) -> Optional[DomainEvent]:
        """Run one poll attempt at `chain.attempt_index`.

        Returns the event pushed for this attempt, or None if the chain is
        not (or no longer) active.
        """
        if chain.status is not ChainStatus.ACTIVE:
            return None

        if chain.attempt_index >= len(self.schedule):
            logger.warning(
                "[POLL] Polling limit reached for session_id=%s, tracking_id=%s",
                chain.session_id,
                chain.tracking_id,
            )
            return self._terminate(chain, timeout_event(chain.tracking_id))

        await self._sleep(self.schedule.get(chain.attempt_index))
        if chain.status is not ChainStatus.ACTIVE:
            return None

        try:
            raw_status = await self.backend.status(chain.tracking_id, chain.attempt_index)
        except ExternalCallException as e:
            if e.status_code is not None:
                logger.error("[POLL] Polling failed with response error: %s", e.status_code)
                message = f"Polling failed: {e.detail}"
            else:
                logger.error("[POLL] Polling exception occurred: %s", e.detail)
                message = f"Exception: {e.detail}"
            return self._terminate(chain, error_event(chain.tracking_id, message))

        if chain.status is not ChainStatus.ACTIVE:
            return None

        logger.info("[POLL] Status response for trackingId=%s: %s", chain.tracking_id, raw_status)
        event = classify_status(raw_status, chain.tracking_id)
        if event.is_terminal:
            return self._terminate(chain, event)

        self._emit(chain, event)
        chain.attempt_index += 1
        return event

    def _terminate(self, chain: PollChain, event: DomainEvent) -> DomainEvent:
        chain.status = ChainStatus.TERMINATED
        chain.outcome = event.kind
        self._emit(chain, event)
        logger.info(
            "[POLL] Polling stopped after terminal state: %s (tracking_id=%s)",
            event.kind.value,
            chain.tracking_id,
        )
        return event

    def _emit(self, chain: PollChain, event: DomainEvent) -> None:
        self.registry.push(chain.session_id, event)

    # ------------------------------------------------------------------
    # Cancellation + inspection
    # ------------------------------------------------------------------

    def cancel_chain(self, session_id: str) -> bool:
        """Stop the session's chain so it issues no further external calls."""
        chain = self._chains.pop(session_id, None)
        if chain is None or not chain.is_running:
            return False
        chain.status = ChainStatus.CANCELLED
        if chain.task is not None and not chain.task.done():
            chain.task.cancel()
        logger.info(
            "[POLL] Cancelled chain for session_id=%s tracking_id=%s",
            session_id,
            chain.tracking_id,
        )
        return True

    def get_chain(self, session_id: str) -> Optional[PollChain]:
        return self._chains.get(session_id)

    def active_chains(self) -> List[PollChain]:
        return [chain for chain in self._chains.values() if chain.is_running]

    async def shutdown(self) -> None:
        """Cancel every running chain and wait for the tasks to finish."""
        tasks = []
        for session_id in list(self._chains):
            chain = self._chains[session_id]
            if chain.task is not None:
                tasks.append(chain.task)
            self.cancel_chain(session_id)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
