from enum import Enum
from typing import FrozenSet

from pydantic import BaseModel, ConfigDict, Field


class EventKind(str, Enum):
    ACK = "ACK"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REJECTED = "REJECTED"
    TIMEOUT = "TIMEOUT"
    ERROR = "ERROR"


# After any of these no further status calls or events are produced.
TERMINAL_KINDS: FrozenSet[EventKind] = frozenset(
    {
        EventKind.COMPLETED,
        EventKind.FAILED,
        EventKind.REJECTED,
        EventKind.TIMEOUT,
        EventKind.ERROR,
    }
)


class DomainEvent(BaseModel):
    """
    One status update relayed to a session's event stream.

    On the wire it is serialized with the client-facing field names:

        {"status": "IN_PROGRESS", "message": "...", "trackingId": "T-1"}
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: EventKind = Field(alias="status")
    message: str
    tracking_id: str = Field(alias="trackingId")

    @property
    def is_terminal(self) -> bool:
        return self.kind in TERMINAL_KINDS

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
