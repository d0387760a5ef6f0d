"""Pattern search over the sharded answer corpus.

Two strategies, picked by ``PatternAnalyzer``:

* ``direct`` -- a literal first letter resolves to one shard, loaded and
  scanned sequentially.
* ``parallel-optimized`` -- a leading wildcard selects every shard for the
  pattern length. Loads are issued concurrently in waves of ``max_workers``;
  each wave settles, its shards are scanned in completion order, and the
  search stops once ``early_stop_factor * max_results`` matches have
  accumulated. Later waves are then never fetched.

Completion order is not deterministic, so an early-stopped search can return
a different (equally valid) subset across runs. Per-shard failures are
logged and contribute no matches; manifest failures propagate.
"""
from __future__ import annotations

import re
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass

from .errors import ShardLoadError, StorageUnavailable
from .logging_jsonl import JsonlLogger
from .manifest import ManifestLoader
from .models import AnswerMatch, Shard
from .pattern import (
    STRATEGY_PARALLEL,
    PatternAnalyzer,
    compile_pattern,
    is_valid_pattern,
    matches,
    normalize_pattern,
)
from .result_cache import NoopResultCache, ResultCache
from .shard_cache import ShardCache


@dataclass
class SearchOutcome:
    pattern: str
    strategy: str
    results: list[AnswerMatch]
    cache_hit: bool = False
    shards_total: int = 0
    shards_scanned: int = 0
    shards_failed: int = 0
    early_stopped: bool = False
    elapsed_ms: int = 0


def rank_matches(found: list[AnswerMatch], max_results: int) -> list[AnswerMatch]:
    """Count descending; equal counts fall back to the answer, ascending."""
    ordered = sorted(found, key=lambda m: (-m.count, m.answer))
    return ordered[: max(0, max_results)]


def _scan(shard: Shard, matcher: re.Pattern[str], out: list[AnswerMatch]) -> None:
    for item in shard.answers:
        if matches(matcher, item.answer):
            out.append(item)


def _waves(items: list[str], size: int) -> list[list[str]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


class SearchEngine:
    def __init__(
        self,
        *,
        manifest: ManifestLoader,
        shards: ShardCache,
        results: ResultCache | None = None,
        analyzer: PatternAnalyzer | None = None,
        logger: JsonlLogger | None = None,
        early_stop_factor: int = 2,
        max_workers: int = 8,
    ) -> None:
        self.manifest = manifest
        self.shards = shards
        self.results = results or NoopResultCache()
        self.analyzer = analyzer or PatternAnalyzer()
        self.logger = logger or JsonlLogger()
        self.early_stop_factor = max(1, int(early_stop_factor))
        self.max_workers = max(1, int(max_workers))

    def search(self, pattern: str, max_results: int = 50) -> list[AnswerMatch]:
        return self.run(pattern, max_results).results

    def run(self, pattern: str, max_results: int = 50) -> SearchOutcome:
        started = time.monotonic()
        normalized = normalize_pattern(pattern)
        analysis = self.analyzer.analyze(normalized)
        outcome = SearchOutcome(pattern=normalized, strategy=analysis.search_strategy, results=[])
        if max_results < 1 or not is_valid_pattern(normalized):
            return outcome

        cached = self.results.get(normalized)
        if cached.serves(max_results):
            outcome.results = cached.results[:max_results]
            outcome.cache_hit = True
            outcome.elapsed_ms = int((time.monotonic() - started) * 1000)
            return outcome

        shard_ids = self.manifest.shard_ids_for_pattern(normalized)
        outcome.shards_total = len(shard_ids)
        matcher = compile_pattern(normalized)
        if analysis.search_strategy == STRATEGY_PARALLEL:
            found = self._search_parallel(shard_ids, matcher, max_results, outcome)
        else:
            found = self._search_direct(shard_ids, matcher, outcome)

        outcome.results = rank_matches(found, max_results)
        self.results.put(normalized, outcome.results, limit=max_results)
        outcome.elapsed_ms = int((time.monotonic() - started) * 1000)
        return outcome

    def _load(self, shard_id: str, outcome: SearchOutcome) -> Shard | None:
        try:
            return self.shards.load(shard_id)
        except (ShardLoadError, StorageUnavailable) as e:
            self._log_failure(shard_id, e, outcome)
            return None

    def _log_failure(self, shard_id: str, error: ShardLoadError | StorageUnavailable, outcome: SearchOutcome) -> None:
        outcome.shards_failed += 1
        self.logger.event(
            "shard_failed",
            level="warning",
            shard_id=shard_id,
            code=error.code,
            pattern=outcome.pattern,
        )

    def _search_direct(self, shard_ids: list[str], matcher: re.Pattern[str], outcome: SearchOutcome) -> list[AnswerMatch]:
        found: list[AnswerMatch] = []
        for shard_id in shard_ids:
            shard = self._load(shard_id, outcome)
            if shard is None:
                continue
            _scan(shard, matcher, found)
            outcome.shards_scanned += 1
        return found

    def _search_parallel(
        self,
        shard_ids: list[str],
        matcher: re.Pattern[str],
        max_results: int,
        outcome: SearchOutcome,
    ) -> list[AnswerMatch]:
        threshold = self.early_stop_factor * max_results
        found: list[AnswerMatch] = []
        if not shard_ids:
            return found
        workers = min(self.max_workers, len(shard_ids))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            for wave in _waves(shard_ids, workers):
                futures = {pool.submit(self.shards.load, shard_id): shard_id for shard_id in wave}
                loaded: list[Shard] = []
                for future in as_completed(futures):
                    shard_id = futures[future]
                    try:
                        loaded.append(future.result())
                    except (ShardLoadError, StorageUnavailable) as e:
                        self._log_failure(shard_id, e, outcome)
                for shard in loaded:
                    _scan(shard, matcher, found)
                    outcome.shards_scanned += 1
                    if len(found) >= threshold:
                        outcome.early_stopped = True
                        break
                if outcome.early_stopped:
                    self.logger.event(
                        "early_stop",
                        level="info",
                        pattern=outcome.pattern,
                        matches=len(found),
                        shards_scanned=outcome.shards_scanned,
                        shards_total=outcome.shards_total,
                    )
                    break
        return found
