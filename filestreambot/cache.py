"""A bounded in-memory cache of file properties with per-entry expiry."""

from __future__ import annotations

import logging
import pickle
import threading
import time
from collections import OrderedDict
from typing import Callable

from .types import File

log = logging.getLogger("filestreambot.cache")

DEFAULT_CAPACITY = 10 * 1024 * 1024


class CacheMiss(KeyError):
    """Raised when a key is absent from the cache or has expired."""


class FileCache:
    """Stores serialised copies of :class:`File` values under string keys.

    Entries with a positive ``expire_seconds`` vanish after that many seconds.
    When the total stored size would exceed ``capacity`` bytes, the oldest
    entries are dropped first.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float | None, bytes]] = OrderedDict()
        self._size = 0
        self._lock = threading.RLock()
        log.info("Initialized")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str) -> File:
        """Return a fresh copy of the value stored under ``key``."""
        with self._lock:
            try:
                expires_at, data = self._entries[key]
            except KeyError:
                raise CacheMiss(key) from None
            if expires_at is not None and self._clock() >= expires_at:
                self._remove(key)
                raise CacheMiss(key)
        return pickle.loads(data)

    def set(self, key: str, value: File, expire_seconds: int = 0) -> None:
        """Store a copy of ``value``; ``expire_seconds`` <= 0 means no expiry."""
        data = pickle.dumps(value)
        entry_size = len(key) + len(data)
        with self._lock:
            if key in self._entries:
                self._remove(key)
            if entry_size > self._capacity:
                log.debug("Entry %s too large to cache (%d bytes)", key, entry_size)
                return
            while self._entries and self._size + entry_size > self._capacity:
                oldest = next(iter(self._entries))
                self._remove(oldest)
            expires_at = self._clock() + expire_seconds if expire_seconds > 0 else None
            self._entries[key] = (expires_at, data)
            self._size += entry_size

    def delete(self, key: str) -> None:
        """Remove ``key`` if present."""
        with self._lock:
            if key in self._entries:
                self._remove(key)

    def _remove(self, key: str) -> None:
        _, data = self._entries.pop(key)
        self._size -= len(key) + len(data)