"""Process-lifetime memo caches for computed reports."""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    """A cached value and when it stops being valid."""

    value: T
    expires_at: datetime


class MemoCache(Generic[T]):
    """Holds a single computed value until it expires or is invalidated.

    With ``ttl=None`` the value lives until ``invalidate()`` is called.
    """

    def __init__(self, name: str, ttl: timedelta | None = None):
        self.name = name
        self.ttl = ttl
        self._entry: CacheEntry[T] | None = None
        self._lock = threading.Lock()

    @property
    def is_valid(self) -> bool:
        return self._entry is not None and datetime.now() < self._entry.expires_at

    def get_or_compute(self, compute: Callable[[], T]) -> T:
        """Return the cached value, computing and storing it on a miss.

        Concurrent misses compute once; later callers wait for the result.
        """
        with self._lock:
            if self._entry is not None and self.is_valid:
                return self._entry.value

            value = compute()
            expires_at = datetime.max if self.ttl is None else datetime.now() + self.ttl
            self._entry = CacheEntry(value=value, expires_at=expires_at)
            return value

    def invalidate(self) -> None:
        if self._entry is not None:
            logger.debug(f"Invalidated {self.name} cache")
        self._entry = None
