"""
notifications/hub.py -- In-process fan-out of catalog events to websocket subscribers.

Services publish from FastAPI's worker threads; subscribers are websocket
handlers running on the event loop. publish() therefore never touches a
subscriber's queue directly -- it schedules the put on the subscriber's own
loop with call_soon_threadsafe.

Delivery is best-effort: a subscriber whose queue is full drops the message,
and a subscriber whose loop has closed is unsubscribed.

Usage (websocket handler):
    sub = hub.subscribe()
    try:
        while True:
            await websocket.send_json(await sub.queue.get())
    finally:
        hub.unsubscribe(sub)
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import threading
from typing import Any

FUNKO_CREATED = "FUNKO_CREATED"
FUNKO_UPDATED = "FUNKO_UPDATED"
FUNKO_PATCHED = "FUNKO_PATCHED"
FUNKO_DELETED = "FUNKO_DELETED"

_QUEUE_SIZE = 100


class Subscription:
    def __init__(self, loop: asyncio.AbstractEventLoop, maxsize: int = _QUEUE_SIZE) -> None:
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.loop = loop
        self.dropped = 0

    def _offer(self, message: dict) -> None:
        try:
            self.queue.put_nowait(message)
        except asyncio.QueueFull:
            self.dropped += 1


class NotificationHub:
    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._subs: set[Subscription] = set()
        self._lock = threading.Lock()
        self._log = logger or logging.getLogger("funkostore.notifications")

    def subscribe(self) -> Subscription:
        """Register a subscriber bound to the running event loop."""
        sub = Subscription(asyncio.get_running_loop())
        with self._lock:
            self._subs.add(sub)
        self._log.info("Subscriber connected (%d total)", len(self._subs))
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            self._subs.discard(sub)
        self._log.info("Subscriber disconnected (%d total)", len(self._subs))

    @property
    def subscriber_count(self) -> int:
        return len(self._subs)

    def publish(self, event: str, payload: Any) -> int:
        """Queue {"event", "data"} for every subscriber. Returns how many were reached."""
        if dataclasses.is_dataclass(payload):
            payload = dataclasses.asdict(payload)
        message = {"event": event, "data": payload}

        with self._lock:
            subs = list(self._subs)
        delivered = 0
        for sub in subs:
            try:
                sub.loop.call_soon_threadsafe(sub._offer, message)
                delivered += 1
            except RuntimeError:
                # Loop closed under us.
                self.unsubscribe(sub)
        self._log.debug("Published %s to %d subscriber(s)", event, delivered)
        return delivered
