"""Change feed and the SSE stream."""

import asyncio
import json

import pytest
from fastapi import HTTPException

from spotin.realtime import ChangeFeed, change_feed, format_sse, stream_changes
from spotin.routes.realtime import parse_topics


class TestChangeFeed:
    """Tests for ChangeFeed"""

    def test_topic_filtering(self):
        """Subscribers only receive the topics they asked for."""

        async def scenario():
            feed = ChangeFeed()
            bar = feed.subscribe(["orders"])
            desk = feed.subscribe(["clients", "orders"])

            assert feed.publish("orders", "created", {"order_id": 1}) == 2
            assert feed.publish("clients", "checked_in", {"client_id": 7}) == 1
            assert feed.publish("payroll", "paid") == 0
            return bar, desk

        bar, desk = asyncio.run(scenario())
        assert bar.queue.qsize() == 1
        assert desk.queue.qsize() == 2
        message = bar.queue.get_nowait()
        assert message["topic"] == "orders"
        assert message["payload"] == {"order_id": 1}

    def test_unknown_topics_ignored_on_subscribe(self):
        async def scenario():
            return ChangeFeed().subscribe(["orders", "weather"])

        assert asyncio.run(scenario()).topics == frozenset({"orders"})

    def test_slow_consumer_drops_oldest(self):
        """A full queue discards its oldest message to make room."""

        async def scenario():
            feed = ChangeFeed(max_queue=2)
            sub = feed.subscribe(["stock"])
            for n in range(3):
                feed.publish("stock", "adjusted", {"n": n})
            return sub

        sub = asyncio.run(scenario())
        assert sub.dropped == 1
        assert [sub.queue.get_nowait()["payload"]["n"] for _ in range(2)] == [1, 2]

    def test_publish_without_subscribers(self):
        assert ChangeFeed().publish("orders", "created") == 0


class TestStream:
    """Tests for stream_changes and format_sse"""

    def test_format_sse(self):
        frame = format_sse({"topic": "orders", "event": "created", "payload": {"order_id": 3}, "ts": 1.0})
        event_line, data_line, *_ = frame.split("\n")
        assert event_line == "event: orders"
        assert json.loads(data_line[len("data: "):])["payload"] == {"order_id": 3}
        assert frame.endswith("\n\n")

    def test_stream_yields_messages_and_unsubscribes(self):
        """The stream greets, relays published changes and cleans up on disconnect."""

        async def scenario():
            sub = change_feed.subscribe(["receipts"])
            change_feed.publish("receipts", "created", {"receipt_id": 9})
            checks = iter([False, True])

            async def is_disconnected():
                return next(checks)

            frames = [frame async for frame in stream_changes(sub, is_disconnected)]
            return sub, frames

        sub, frames = asyncio.run(scenario())
        assert frames[0] == ": connected\n\n"
        assert frames[1].startswith("event: receipts")
        assert len(frames) == 2
        assert sub not in change_feed.subscriptions


class TestStreamEndpoint:
    """Tests for GET /realtime/stream"""

    def test_parse_topics(self):
        assert parse_topics("orders, clients") == ["orders", "clients"]
        assert len(parse_topics(None)) == 10

    def test_unknown_topic(self):
        """Given a topic that does not exist, returns 400."""
        with pytest.raises(HTTPException) as exc:
            parse_topics("orders,weather")
        assert exc.value.status_code == 400
        assert "weather" in exc.value.detail

    def test_requires_staff_token(self, api):
        assert api.get("/realtime/stream").status_code == 401
