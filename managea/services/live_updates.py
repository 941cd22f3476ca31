# /managea/services/live_updates.py

"""
In-process publish/subscribe for live record snapshots.

A subscriber registers interest in one record kind ("classes", "students" or
"violations") and receives the full, ordered snapshot of that kind: once
immediately on subscribing, and again after every committed write that touched
the kind. Snapshots are lists of plain JSON-ready dictionaries.
"""

import logging
import threading
from collections import defaultdict
from typing import Callable, Dict, Iterable, List

logger = logging.getLogger(__name__)

CLASSES = "classes"
STUDENTS = "students"
VIOLATIONS = "violations"
KINDS = (CLASSES, STUDENTS, VIOLATIONS)

Snapshot = List[Dict]
SnapshotCallback = Callable[[Snapshot], None]
SnapshotLoader = Callable[[str], Snapshot]


class Subscription:
    """Handle returned by `LiveUpdateHub.subscribe`. Call `unsubscribe()` on teardown."""

    def __init__(self, hub: "LiveUpdateHub", kind: str, callback: SnapshotCallback):
        self._hub = hub
        self.kind = kind
        self.callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self._hub._remove(self)


class LiveUpdateHub:
    def __init__(self):
        self._subscribers: Dict[str, List[Subscription]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, kind: str, callback: SnapshotCallback, loader: SnapshotLoader) -> Subscription:
        if kind not in KINDS:
            raise ValueError(f"Unknown record kind: {kind}")
        subscription = Subscription(self, kind, callback)
        with self._lock:
            self._subscribers[kind].append(subscription)
        self._deliver(subscription, loader(kind))
        return subscription

    def subscriber_count(self, kind: str) -> int:
        with self._lock:
            return len(self._subscribers[kind])

    def publish(self, kinds: Iterable[str], loader: SnapshotLoader) -> None:
        """Sends a fresh snapshot of each changed kind to its subscribers."""
        for kind in kinds:
            with self._lock:
                subscribers = list(self._subscribers[kind])
            if not subscribers:
                continue
            snapshot = loader(kind)
            for subscription in subscribers:
                self._deliver(subscription, snapshot)

    def _deliver(self, subscription: Subscription, snapshot: Snapshot) -> None:
        if not subscription.active:
            return
        try:
            subscription.callback(snapshot)
        except Exception:
            logger.exception("Live update subscriber for '%s' failed", subscription.kind)

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            subscribers = self._subscribers[subscription.kind]
            if subscription in subscribers:
                subscribers.remove(subscription)


# Process-wide hub shared by every request's DatabaseService.
live_hub = LiveUpdateHub()
