"""Tests for runtime.store.event_channel."""

import asyncio

import pytest

from core.polling.classifier import ack_event, classify_status
from exceptions.exceptions import ChannelAlreadyConsumedException
from runtime.store.event_channel import EventChannel


async def _collect(channel: EventChannel):
    return [event async for event in channel.stream()]


class TestPushAndDrain:
    @pytest.mark.asyncio
    async def test_events_are_delivered_in_push_order(self) -> None:
        channel = EventChannel("s1")
        events = [ack_event("T"), classify_status("one", "T"), classify_status("two", "T")]
        for event in events:
            assert channel.push(event) is True
        channel.complete()

        assert await _collect(channel) == events

    @pytest.mark.asyncio
    async def test_push_before_consumer_is_buffered(self) -> None:
        channel = EventChannel("s1")
        channel.push(ack_event("T"))
        assert channel.pending == 1

        consumer = asyncio.create_task(_collect(channel))
        await asyncio.sleep(0)
        channel.push(classify_status("later", "T"))
        channel.complete()

        received = await consumer
        assert [e.message for e in received] == ["Process started", "later"]

    @pytest.mark.asyncio
    async def test_push_after_complete_is_silent_noop(self) -> None:
        channel = EventChannel("s1")
        channel.complete()
        assert channel.closed is True
        assert channel.push(ack_event("T")) is False
        assert await _collect(channel) == []

    def test_complete_is_idempotent(self) -> None:
        channel = EventChannel("s1")
        channel.complete()
        channel.complete()
        assert channel.pending == 1

    def test_second_consumer_rejected(self) -> None:
        channel = EventChannel("s1")
        channel.stream()
        with pytest.raises(ChannelAlreadyConsumedException):
            channel.stream()


class TestCleanup:
    @pytest.mark.asyncio
    async def test_cleanup_fires_when_consumer_is_cancelled(self) -> None:
        channel = EventChannel("s1")
        calls = []
        channel.add_cleanup(lambda: calls.append("cleanup"))

        consumer = asyncio.create_task(_collect(channel))
        await asyncio.sleep(0)
        consumer.cancel()
        with pytest.raises(asyncio.CancelledError):
            await consumer

        assert calls == ["cleanup"]
        assert channel.closed is True
        assert channel.push(ack_event("T")) is False

    @pytest.mark.asyncio
    async def test_cleanup_fires_once_on_normal_end(self) -> None:
        channel = EventChannel("s1")
        calls = []
        channel.add_cleanup(lambda: calls.append(1))
        channel.complete()
        await _collect(channel)
        channel.complete()
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_failing_cleanup_does_not_block_others(self) -> None:
        channel = EventChannel("s1")
        calls = []

        def explode() -> None:
            raise RuntimeError("cleanup exploded")

        channel.add_cleanup(explode)
        channel.add_cleanup(lambda: calls.append("second"))
        channel.complete()
        await _collect(channel)
        assert calls == ["second"]
