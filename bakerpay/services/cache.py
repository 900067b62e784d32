"""In-process TTL cache used as a cache-aside layer in front of the indexer.

Entries live until they expire, are evicted by the size bound, or the cache is
cleared. Concurrent requests for the same missing or expired key share a single
fetch: the first caller runs it, the others wait for its outcome.
"""

import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Generic, TypeVar

import structlog

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

V = TypeVar("V")


@dataclass(slots=True)
class _Entry(Generic[V]):
    value: V
    stored_at: float


class TTLCache(Generic[V]):
    """Thread-safe key -> value store with per-call freshness windows."""

    def __init__(
        self,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be positive")
        self.max_entries: int | None = max_entries
        self._clock: Callable[[], float] = clock
        self._entries: OrderedDict[str, _Entry[V]] = OrderedDict()
        self._inflight: dict[str, Future[V]] = {}
        self._lock: threading.Lock = threading.Lock()

    def get_or_fetch(self, key: str, ttl: float, fetch_fn: Callable[[], V]) -> V:
        """Return the fresh value for `key`, calling `fetch_fn` on a miss or expiry.

        A failing fetch stores nothing; its exception reaches every caller
        waiting on that key.
        """
        with self._lock:
            entry: _Entry[V] | None = self._entries.get(key)
            if entry is not None and self._clock() - entry.stored_at < ttl:
                logger.debug("Cache hit", key=key)
                return entry.value
            pending: Future[V] | None = self._inflight.get(key)
            leader: bool = pending is None
            if pending is None:
                pending = Future()
                self._inflight[key] = pending

        if not leader:
            logger.debug("Waiting on in-flight fetch", key=key)
            return pending.result()

        try:
            value: V = fetch_fn()
        except Exception as exc:
            pending.set_exception(exc)
            raise
        except BaseException:
            pending.cancel()
            raise
        else:
            with self._lock:
                self._store(key, value)
            pending.set_result(value)
            return value
        finally:
            with self._lock:
                self._inflight.pop(key, None)

    def _store(self, key: str, value: V) -> None:
        self._entries[key] = _Entry(value=value, stored_at=self._clock())
        self._entries.move_to_end(key)
        if self.max_entries is None:
            return
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Cache eviction", key=evicted)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def size(self) -> int:
        with self._lock:
            return len(self._entries)
