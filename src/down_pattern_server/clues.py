from __future__ import annotations

import random
from typing import TypeVar

from .errors import ManifestCorrupt, ManifestUnavailable, ShardLoadError, StorageUnavailable
from .logging_jsonl import JsonlLogger
from .manifest import ManifestLoader
from .pattern import normalize_pattern
from .shard_cache import ShardCache

T = TypeVar("T")


def dedupe(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))


def shuffled(items: list[T], rng: random.Random | None = None) -> list[T]:
    """Fisher-Yates over a copy; every permutation is equally likely."""
    rand = rng or random
    out = list(items)
    for i in range(len(out) - 1, 0, -1):
        j = rand.randint(0, i)
        out[i], out[j] = out[j], out[i]
    return out


class ClueRetriever:
    """Clues for a known answer; any failure degrades to an empty list."""

    def __init__(
        self,
        *,
        manifest: ManifestLoader,
        shards: ShardCache,
        logger: JsonlLogger | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.manifest = manifest
        self.shards = shards
        self.logger = logger or JsonlLogger()
        self.rng = rng or random.Random()

    def clues(self, answer: str, max_clues: int = 10) -> list[str]:
        normalized = normalize_pattern(answer)
        if not normalized or max_clues < 1:
            return []
        try:
            shard_id = self.manifest.shard_id_for_answer(normalized)
            if shard_id is None:
                return []
            shard = self.shards.load(shard_id)
        except (ManifestUnavailable, ManifestCorrupt, ShardLoadError, StorageUnavailable) as e:
            self.logger.event("clues_unavailable", level="warning", answer=normalized, code=e.code)
            return []
        unique = dedupe(shard.clues.get(normalized, []))
        return shuffled(unique, self.rng)[:max_clues]
