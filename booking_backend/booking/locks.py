"""Process-wide mutual exclusion keyed by arbitrary hashable values."""

from collections.abc import Hashable, Iterator
from contextlib import contextmanager
from threading import Lock


class KeyedLock:
    """Hands out one lock per key and forgets it when nobody needs it."""

    def __init__(self):
        self._guard = Lock()
        self._locks: dict[Hashable, Lock] = {}
        self._holders: dict[Hashable, int] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(key, Lock())
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

    def active_keys(self) -> set[Hashable]:
        with self._guard:
            return set(self._locks)
