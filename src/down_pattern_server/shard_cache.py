from __future__ import annotations

import threading
from collections import OrderedDict

from pydantic import ValidationError

from .errors import ShardCorrupt, ShardNotFound, StorageUnavailable, ToolError
from .logging_jsonl import JsonlLogger
from .models import Shard
from .path_guard import join_key
from .storage import ObjectStore


class ShardCache:
    """Bounded in-memory cache of decoded shards keyed by shard id.

    Eviction is by insertion order: reading a cached shard does not refresh
    its position. Fetches run outside the lock, so two concurrent misses on
    the same shard both fetch and the later insert wins.
    """

    def __init__(
        self,
        store: ObjectStore,
        *,
        prefix: str,
        max_keep: int = 10,
        logger: JsonlLogger | None = None,
    ) -> None:
        self.store = store
        self.prefix = prefix
        self.max_keep = max(1, int(max_keep))
        self.logger = logger or JsonlLogger()
        self._items: OrderedDict[str, Shard] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._items)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._items.keys())

    def get_cached(self, shard_id: str) -> Shard | None:
        with self._lock:
            return self._items.get(shard_id)

    def load(self, shard_id: str) -> Shard:
        cached = self.get_cached(shard_id)
        if cached is not None:
            return cached
        shard = self._fetch(shard_id)
        self._insert(shard_id, shard)
        return shard

    def _fetch(self, shard_id: str) -> Shard:
        try:
            key = join_key(self.prefix, shard_id)
        except ToolError as e:
            raise ShardNotFound(f"invalid shard id {shard_id!r}", {"shard_id": shard_id}) from e
        try:
            raw = self.store.get(key)
        except StorageUnavailable:
            raise
        except ToolError as e:
            raise ShardNotFound(f"shard {shard_id} rejected by store", {"shard_id": shard_id, "key": key}) from e
        if raw is None:
            raise ShardNotFound(f"shard {shard_id} not found", {"shard_id": shard_id, "key": key})
        try:
            shard = Shard.model_validate_json(raw)
        except ValidationError as e:
            raise ShardCorrupt(f"shard {shard_id} could not be decoded", {"shard_id": shard_id, "key": key}) from e
        self.logger.event("shard_fetched", level="debug", shard_id=shard_id, answers=len(shard.answers))
        return shard

    def _insert(self, shard_id: str, shard: Shard) -> None:
        with self._lock:
            self._items.pop(shard_id, None)
            self._items[shard_id] = shard
            while len(self._items) > self.max_keep:
                evicted, _ = self._items.popitem(last=False)
                self.logger.event("shard_evicted", level="debug", shard_id=evicted)
