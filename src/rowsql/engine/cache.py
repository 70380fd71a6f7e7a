"""Row identity cache.

Maps ``(table, token)`` keys to the row values they were computed from, so
an update or delete issued after a listing can rebuild its WHERE clause
without re-reading the table.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from contextlib import contextmanager
from typing import Any, Iterator

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 100

CacheKey = tuple[str, str]


class _ReadWriteLock:
    """Many concurrent readers or one writer.

    Writers take priority: once a writer is waiting, new readers block until
    it has finished.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class RowCache:
    """Bounded FIFO cache of rows keyed by ``(table, token)``.

    Eviction follows insertion order, not access order: ``get`` never
    changes which entry goes next.  Re-setting an existing key moves it
    to the newest position.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("RowCache capacity must be at least 1")
        self._rows: OrderedDict[CacheKey, list[Any]] = OrderedDict()
        self._capacity = capacity
        self._lock = _ReadWriteLock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def get(self, key: CacheKey) -> list[Any] | None:
        """Return the cached row for *key*, or None on miss."""
        with self._lock.read():
            return self._rows.get(key)

    def set(self, key: CacheKey, row: list[Any]) -> None:
        """Store *row* under *key*, evicting the oldest entry when full."""
        with self._lock.write():
            self._rows.pop(key, None)
            self._rows[key] = row
            while len(self._rows) > self._capacity:
                evicted, _ = self._rows.popitem(last=False)
                logger.debug("Row cache evict: %s/%s", *evicted)

    def delete(self, key: CacheKey) -> None:
        """Drop *key* if present."""
        with self._lock.write():
            self._rows.pop(key, None)

    def clear(self) -> None:
        with self._lock.write():
            self._rows.clear()

    def __contains__(self, key: object) -> bool:
        with self._lock.read():
            return key in self._rows

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._rows)
