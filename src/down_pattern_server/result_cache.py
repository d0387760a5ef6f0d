from __future__ import annotations

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, Protocol

from .models import AnswerMatch


@dataclass(frozen=True)
class CacheLookupResult:
    hit: bool
    results: list[AnswerMatch] = field(default_factory=list)
    limit: int | None = None

    def serves(self, max_results: int) -> bool:
        """Whether the cached set can answer a request for ``max_results``."""
        if not self.hit:
            return False
        if self.limit is None or self.limit >= max_results:
            return True
        # Fewer results than the limit means the set was already complete.
        return len(self.results) < self.limit


@dataclass
class ResultCacheEntry:
    created_at: float
    results: tuple[AnswerMatch, ...]
    limit: int | None


class ResultCache(Protocol):
    def get(self, pattern: str) -> CacheLookupResult: ...

    def put(self, pattern: str, results: list[AnswerMatch], *, limit: int | None = None) -> None: ...

    @property
    def size(self) -> int: ...


class NoopResultCache:
    def get(self, pattern: str) -> CacheLookupResult:
        return CacheLookupResult(hit=False)

    def put(self, pattern: str, results: list[AnswerMatch], *, limit: int | None = None) -> None:
        return None

    @property
    def size(self) -> int:
        return 0


class ResultCacheStore:
    """Finalized search results keyed by normalized pattern.

    Entries expire on read once older than ``ttl_sec``; there is no sweep.
    Size is bounded by insertion order, independent of age.
    """

    def __init__(
        self,
        *,
        max_keep: int = 100,
        ttl_sec: float = 300.0,
        now_fn: Callable[[], float] | None = None,
    ) -> None:
        self.max_keep = max(1, int(max_keep))
        self.ttl_sec = max(0.0, float(ttl_sec))
        self._now_fn = now_fn or time.monotonic
        self._items: OrderedDict[str, ResultCacheEntry] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._items)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._items.keys())

    def get(self, pattern: str) -> CacheLookupResult:
        now = self._now_fn()
        with self._lock:
            item = self._items.get(pattern)
            if item is None:
                return CacheLookupResult(hit=False)
            if now - item.created_at > self.ttl_sec:
                self._items.pop(pattern, None)
                return CacheLookupResult(hit=False)
            return CacheLookupResult(hit=True, results=list(item.results), limit=item.limit)

    def put(self, pattern: str, results: list[AnswerMatch], *, limit: int | None = None) -> None:
        entry = ResultCacheEntry(created_at=self._now_fn(), results=tuple(results), limit=limit)
        with self._lock:
            self._items.pop(pattern, None)
            while len(self._items) >= self.max_keep:
                self._items.popitem(last=False)
            self._items[pattern] = entry
