"""Per-key locks for serializing account-scoped workflows"""

import threading
from contextlib import contextmanager
from typing import Iterator


class KeyedLock:
    """
    Registry of re-entrant locks, one per key.

    Checkout and cancellation for the same account run one at a time;
    different accounts never block each other.
    """

    def __init__(self):
        self._locks: dict[str, threading.RLock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, key: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        """Hold the lock for ``key`` for the duration of the block"""
        lock = self._lock_for(key)
        with lock:
            yield


# Singleton instance
account_locks = KeyedLock()
