"""
core.polling.classifier

Maps the raw text returned by the external status endpoint onto a
DomainEvent.

The keyword order is fixed: COMPLETED is checked first, then FAILED, then
REJECTED. A text containing several keywords resolves to the first one in
that order, so "Order COMPLETED but REJECTED earlier" is COMPLETED.
Anything else is IN_PROGRESS and keeps the raw text as its message.
"""

from typing import Tuple

from core.polling.models import DomainEvent, EventKind


STATUS_KEYWORDS: Tuple[Tuple[str, EventKind, str], ...] = (
    ("COMPLETED", EventKind.COMPLETED, "Process completed"),
    ("FAILED", EventKind.FAILED, "Process failed"),
    ("REJECTED", EventKind.REJECTED, "Process rejected"),
)

ACK_MESSAGE = "Process started"
TIMEOUT_MESSAGE = "Polling limit reached"


def classify_status(raw_status: str, tracking_id: str) -> DomainEvent:
    """Classify one raw status response for ``tracking_id``."""
    for keyword, kind, message in STATUS_KEYWORDS:
        if keyword in raw_status:
            return DomainEvent(kind=kind, message=message, tracking_id=tracking_id)
    return DomainEvent(
        kind=EventKind.IN_PROGRESS,
        message=raw_status,
        tracking_id=tracking_id,
    )


def ack_event(tracking_id: str) -> DomainEvent:
    return DomainEvent(kind=EventKind.ACK, message=ACK_MESSAGE, tracking_id=tracking_id)


def timeout_event(tracking_id: str) -> DomainEvent:
    return DomainEvent(kind=EventKind.TIMEOUT, message=TIMEOUT_MESSAGE, tracking_id=tracking_id)


def error_event(tracking_id: str, message: str) -> DomainEvent:
    return DomainEvent(kind=EventKind.ERROR, message=message, tracking_id=tracking_id)
