"""
Realtime change feed
Services publish "something changed" messages after they commit; dashboards
subscribe over Server-Sent Events and re-fetch what they display.
"""

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Optional

logger = logging.getLogger(__name__)

TOPICS = ("clients", "orders", "receipts", "stock", "memberships", "tickets", "events", "payroll", "finance", "feedback")

HEARTBEAT_SECONDS = 15


@dataclass
class Subscription:
    topics: frozenset
    queue: asyncio.Queue
    loop: asyncio.AbstractEventLoop
    dropped: int = 0

    def offer(self, message: dict):
        """Enqueue without blocking; a slow consumer loses its oldest message"""
        if self.queue.full():
            try:
                self.queue.get_nowait()
                self.dropped += 1
            except asyncio.QueueEmpty:
                pass
        self.queue.put_nowait(message)


@dataclass
class ChangeFeed:
    max_queue: int = 100
    subscriptions: list = field(default_factory=list)

    def subscribe(self, topics: Optional[list[str]] = None) -> Subscription:
        """Must be called from inside the event loop that will consume the queue"""
        wanted = frozenset(t for t in (topics or TOPICS) if t in TOPICS)
        sub = Subscription(
            topics=wanted,
            queue=asyncio.Queue(maxsize=self.max_queue),
            loop=asyncio.get_running_loop(),
        )
        self.subscriptions.append(sub)
        logger.info(f"📡 Realtime subscriber added for {sorted(wanted)} ({len(self.subscriptions)} total)")
        return sub

    def unsubscribe(self, sub: Subscription):
        if sub in self.subscriptions:
            self.subscriptions.remove(sub)
            logger.info(f"📡 Realtime subscriber removed ({len(self.subscriptions)} left)")

    def publish(self, topic: str, event: str, payload: Optional[dict[str, Any]] = None) -> int:
        """Fan a change out to every subscriber of the topic; returns the number notified"""
        message = {"topic": topic, "event": event, "payload": payload or {}, "ts": time.time()}

        try:
            current_loop = asyncio.get_running_loop()
        except RuntimeError:
            current_loop = None

        delivered = 0
        for sub in list(self.subscriptions):
            if topic not in sub.topics:
                continue
            if sub.loop is current_loop:
                sub.offer(message)
            elif sub.loop.is_closed():
                self.unsubscribe(sub)
                continue
            else:
                sub.loop.call_soon_threadsafe(sub.offer, message)
            delivered += 1

        logger.debug(f"📣 {topic}.{event} delivered to {delivered} subscriber(s)")
        return delivered


# Process-wide feed
change_feed = ChangeFeed()


def publish(topic: str, event: str, payload: Optional[dict[str, Any]] = None) -> int:
    return change_feed.publish(topic, event, payload)


def format_sse(message: dict) -> str:
    return f"event: {message['topic']}\ndata: {json.dumps(message, default=str)}\n\n"


async def stream_changes(sub: Subscription, is_disconnected):
    """Async generator of SSE frames for one subscriber, with heartbeats"""
    try:
        yield ": connected\n\n"
        while True:
            if await is_disconnected():
                break
            try:
                message = await asyncio.wait_for(sub.queue.get(), timeout=HEARTBEAT_SECONDS)
                yield format_sse(message)
            except asyncio.TimeoutError:
                yield ": heartbeat\n\n"
    finally:
        change_feed.unsubscribe(sub)
