"""Tests for status text classification and DomainEvent serialization."""

import pytest
from pydantic import ValidationError

from core.polling.classifier import ack_event, classify_status, error_event, timeout_event
from core.polling.models import TERMINAL_KINDS, DomainEvent, EventKind


class TestClassifyStatus:
    @pytest.mark.parametrize(
        "raw, kind, message",
        [
            ("COMPLETED", EventKind.COMPLETED, "Process completed"),
            ('{"state": "FAILED"}', EventKind.FAILED, "Process failed"),
            ("request REJECTED by reviewer", EventKind.REJECTED, "Process rejected"),
        ],
    )
    def test_keywords(self, raw, kind, message) -> None:
        event = classify_status(raw, "T-1")
        assert event.kind is kind
        assert event.message == message
        assert event.tracking_id == "T-1"

    def test_completed_wins_over_rejected(self) -> None:
        """Keyword precedence is COMPLETED, then FAILED, then REJECTED."""
        event = classify_status("Order COMPLETED but REJECTED earlier", "T-1")
        assert event.kind is EventKind.COMPLETED

    def test_failed_wins_over_rejected(self) -> None:
        assert classify_status("REJECTED then FAILED", "T-1").kind is EventKind.FAILED

    def test_no_keyword_is_in_progress_with_raw_message(self) -> None:
        raw = '{"userId": 1, "id": 2, "title": "still working", "completed": false}'
        event = classify_status(raw, "T-9")
        assert event.kind is EventKind.IN_PROGRESS
        assert event.message == raw

    def test_matching_is_case_sensitive(self) -> None:
        assert classify_status("completed", "T-1").kind is EventKind.IN_PROGRESS


class TestDomainEvent:
    def test_wire_format_uses_client_field_names(self) -> None:
        event = classify_status("working", "T-1")
        assert event.to_wire() == {
            "status": "IN_PROGRESS",
            "message": "working",
            "trackingId": "T-1",
        }

    def test_event_is_immutable(self) -> None:
        event = ack_event("T-1")
        with pytest.raises(ValidationError):
            event.message = "changed"

    def test_terminal_kinds(self) -> None:
        assert not ack_event("T").is_terminal
        assert not classify_status("x", "T").is_terminal
        assert timeout_event("T").is_terminal
        assert error_event("T", "boom").is_terminal
        assert EventKind.IN_PROGRESS not in TERMINAL_KINDS
        assert EventKind.ACK not in TERMINAL_KINDS

    def test_accepts_wire_names(self) -> None:
        event = DomainEvent.model_validate(
            {"status": "TIMEOUT", "message": "Polling limit reached", "trackingId": "T"}
        )
        assert event == timeout_event("T")
