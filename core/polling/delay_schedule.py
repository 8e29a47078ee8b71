"""
core.polling.delay_schedule

Escalating wait durations used between status polls.

A schedule is parsed from comma-separated text such as ``"5,10,20,30"``
(seconds). Attempt ``n`` waits ``schedule.get(n)`` before its status call;
attempts past the end of the list reuse the last entry, and the poll chain
times out once ``attempt_index >= len(schedule)``.
"""

from __future__ import annotations

import logging
from typing import Iterator, Optional, Sequence, Tuple

from exceptions.exceptions import ConfigParseFailure


logger = logging.getLogger(__name__)

# Used when the configured text is empty or malformed.
DEFAULT_DELAY_SECONDS = 30


def _parse_tokens(raw_text: str) -> Tuple[int, ...]:
    """Strict parse of the interval text; raises ConfigParseFailure."""
    delays = []
    for token in raw_text.split(","):
        token = token.strip()
        if not token:
            continue
        try:
            value = int(token)
        except ValueError:
            raise ConfigParseFailure(raw_text, token) from None
        if value <= 0:
            raise ConfigParseFailure(raw_text, token)
        delays.append(value)
    return tuple(delays)


class DelaySchedule:
    """Immutable, never-empty sequence of poll delays (seconds).

    Parameters
    ----------
    delays:
        Positive durations in attempt order. An empty sequence is replaced
        by a single ``default`` entry.
    default:
        Fallback delay used when ``delays`` is empty.
    """

    __slots__ = ("_delays",)

    def __init__(self, delays: Sequence[int], default: int = DEFAULT_DELAY_SECONDS) -> None:
        if default <= 0:
            raise ValueError(f"default delay must be positive, got {default}")
        values = tuple(int(d) for d in delays)
        if any(d <= 0 for d in values):
            raise ValueError(f"delays must be positive, got {values}")
        self._delays: Tuple[int, ...] = values or (default,)

    @classmethod
    def parse(cls, raw_text: Optional[str], default: int = DEFAULT_DELAY_SECONDS) -> "DelaySchedule":
        """Build a schedule from comma-separated text.

        Malformed text never propagates: the failure is logged and the
        single-entry default schedule is returned instead.
        """
        try:
            delays = _parse_tokens(raw_text or "")
        except ConfigParseFailure as e:
            logger.warning(
                "[POLL] %s; falling back to default schedule [%s]", e, default
            )
            delays = ()

        schedule = cls(delays, default=default)
        logger.info("[POLL] Polling intervals loaded: %s", list(schedule))
        return schedule

    @property
    def delays(self) -> Tuple[int, ...]:
        return self._delays

    def get(self, attempt_index: int) -> int:
        """Return the delay for ``attempt_index``, or the last one past the end."""
        if attempt_index < 0:
            raise ValueError(f"attempt_index must be >= 0, got {attempt_index}")
        if attempt_index < len(self._delays):
            return self._delays[attempt_index]
        return self._delays[-1]

    def __len__(self) -> int:
        return len(self._delays)

    def __iter__(self) -> Iterator[int]:
        return iter(self._delays)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DelaySchedule):
            return NotImplemented
        return self._delays == other._delays

    def __hash__(self) -> int:
        return hash(self._delays)

    def __repr__(self) -> str:
        return f"DelaySchedule({list(self._delays)!r})"
