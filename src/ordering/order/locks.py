"""Per-order mutual exclusion and in-flight message markers.

Every read-modify-write of an order runs under ``order_lock(order_id)`` so
the courier poller, the reminder scanner and operator actions never
interleave on the same order. In-flight markers flag orders whose message is
being prepared or sent; background scans skip them. Markers expire after
``in_flight_ttl_seconds`` so an abandoned preview never blocks an order.

Locks are held weakly: an order's lock is dropped once no caller holds it.
"""

import threading
import time
import weakref
from collections.abc import Iterator
from contextlib import contextmanager

from shared.config import get_settings

_locks: weakref.WeakValueDictionary = weakref.WeakValueDictionary()
_locks_guard = threading.Lock()


def _lock_for(order_id: str) -> threading.RLock:
    with _locks_guard:
        lock = _locks.get(order_id)
        if lock is None:
            lock = _locks[order_id] = threading.RLock()
        return lock


@contextmanager
def order_lock(order_id: str) -> Iterator[None]:
    lock = _lock_for(order_id)
    with lock:
        yield


class InFlightRegistry:
    def __init__(self, ttl_seconds: float | None = None, clock=time.monotonic):
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._markers: dict[str, float] = {}
        self._guard = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds if self._ttl_seconds is not None else get_settings().in_flight_ttl_seconds

    def mark(self, order_id: str) -> None:
        with self._guard:
            self._markers[order_id] = self._clock()

    def clear(self, order_id: str) -> None:
        with self._guard:
            self._markers.pop(order_id, None)

    def is_in_flight(self, order_id: str) -> bool:
        with self._guard:
            marked_at = self._markers.get(order_id)
            if marked_at is None:
                return False
            if self._clock() - marked_at > self.ttl_seconds:
                del self._markers[order_id]
                return False
            return True

    def reset(self):
        with self._guard:
            self._markers.clear()


_in_flight = InFlightRegistry()


def get_in_flight() -> InFlightRegistry:
    return _in_flight


def reset_locks():
    """Drop all locks and markers (useful for testing)."""
    with _locks_guard:
        _locks.clear()
    _in_flight.reset()
