"""
Shared fixtures and fakes for the inquiry relay tests.

No real HTTP calls and no real waits: the external API is replaced by
FakeInquiryBackend and the poll delay by RecordingSleep / GatedSleep.
"""

import asyncio
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest

from core.polling.delay_schedule import DelaySchedule
from runtime.agents.poll_orchestrator import PollOrchestrator
from runtime.models.api_models import InquiryRequest
from runtime.store.session_registry import SessionRegistry


class FakeInquiryBackend:
    """In-memory stand-in for the external inquiry API.

    `statuses` are returned by attempt index (the last one is repeated);
    `status_errors` maps an attempt index to the exception raised for it.
    """

    def __init__(
        self,
        statuses: Sequence[str] = (),
        *,
        start_error: Optional[Exception] = None,
        status_errors: Optional[Dict[int, Exception]] = None,
    ) -> None:
        self.statuses = list(statuses)
        self.start_error = start_error
        self.status_errors = dict(status_errors or {})
        self.start_calls: List[Tuple[str, Dict[str, Any]]] = []
        self.status_calls: List[Tuple[str, int]] = []

    async def start(self, tracking_id: str, payload: Dict[str, Any]) -> str:
        self.start_calls.append((tracking_id, payload))
        if self.start_error is not None:
            raise self.start_error
        return "ACK"

    async def status(self, tracking_id: str, attempt_index: int) -> str:
        self.status_calls.append((tracking_id, attempt_index))
        if attempt_index in self.status_errors:
            raise self.status_errors[attempt_index]
        if not self.statuses:
            return "IN_PROGRESS"
        return self.statuses[min(attempt_index, len(self.statuses) - 1)]


class RecordingSleep:
    """Sleep replacement that records the requested delays and yields once."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


class GatedSleep:
    """Sleep replacement that blocks until `release()` is called."""

    def __init__(self) -> None:
        self.entered = asyncio.Event()
        self._gate = asyncio.Event()

    async def __call__(self, delay: float) -> None:
        self.entered.set()
        await self._gate.wait()

    def release(self) -> None:
        self._gate.set()


def make_request(tracking_id: str = "T-1", user_id: str = "U-1") -> InquiryRequest:
    return InquiryRequest(trackingId=tracking_id, userId=user_id)


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_orchestrator(registry, recording_sleep):
    """Factory building a PollOrchestrator around a fake backend."""

    def _make(
        backend: FakeInquiryBackend,
        delays: Sequence[int] = (1, 2, 3),
        sleep=None,
    ) -> PollOrchestrator:
        return PollOrchestrator(
            registry,
            backend,
            DelaySchedule(delays),
            sleep=sleep or recording_sleep,
        )

    return _make
