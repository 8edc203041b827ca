from __future__ import annotations

import itertools
import threading
from enum import Enum
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

from loguru import logger as log


class Topic(str, Enum):
    MOVING_AVERAGES = "moving_averages"
    TRADES = "trades"


class Subscription:
    """Handle returned by ``NotificationHub.subscribe``; disposing it unsubscribes."""

    def __init__(self, hub: "NotificationHub", topic: Topic, key: int, callback: Callable[..., Any]) -> None:
        self._hub = hub
        self.topic = topic
        self._key = key
        self.callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._hub._remove(self.topic, self._key)

    def __call__(self) -> None:
        self.unsubscribe()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.unsubscribe()


class NotificationHub:
    """Synchronous topic fan-out with replay of the latest snapshot.

    Each topic keeps the last published payload per replay key. A new
    subscriber immediately receives every retained payload, then live ones.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._ids = itertools.count()
        self._subs: Dict[Topic, Dict[int, Subscription]] = {t: {} for t in Topic}
        self._latest: Dict[Topic, Dict[Hashable, Tuple[Any, ...]]] = {t: {} for t in Topic}

    def subscribe(self, topic: Topic, callback: Callable[..., Any]) -> Subscription:
        with self._lock:
            sub = Subscription(self, topic, next(self._ids), callback)
            self._subs[topic][sub._key] = sub
            replay = list(self._latest[topic].values())
        for args in replay:
            self._deliver(sub, args)
        return sub

    def publish(self, topic: Topic, *args: Any, key: Optional[Hashable] = None) -> None:
        with self._lock:
            self._latest[topic][key] = args
            # dict preserves insertion order, i.e. subscription order
            subs = list(self._subs[topic].values())
        for sub in subs:
            self._deliver(sub, args)

    def subscriber_count(self, topic: Topic) -> int:
        with self._lock:
            return len(self._subs[topic])

    def _deliver(self, sub: Subscription, args: Tuple[Any, ...]) -> None:
        # A subscription disposed during this fan-out must not be called
        if not sub.active:
            return
        try:
            sub.callback(*args)
        except Exception:
            log.exception(f"NotificationHub: subscriber on {sub.topic.value} failed")

    def _remove(self, topic: Topic, key: int) -> None:
        with self._lock:
            self._subs[topic].pop(key, None)
