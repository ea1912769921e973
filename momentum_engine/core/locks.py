"""
Per-key mutual exclusion for read-count-then-write sequences.

Keys are arbitrary hashables (e.g. ``("gate", user_id, day)``). Locks are
reference counted so the registry does not grow without bound.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Iterator, List


class KeyedLock:
    """A registry of re-entrant locks addressed by key."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[Hashable, threading.RLock] = {}
        self._holders: Dict[Hashable, int] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            self._holders[key] = self._holders.get(key, 0) + 1
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                self._holders[key] -= 1
                if self._holders[key] == 0:
                    del self._holders[key]
                    del self._locks[key]

    def active_keys(self) -> List[Hashable]:
        with self._guard:
            return list(self._locks)


_registry = KeyedLock()


def get_keyed_lock() -> KeyedLock:
    return _registry
