from __future__ import annotations

from dataclasses import dataclass

from .clues import ClueRetriever
from .config import Config
from .logging_jsonl import JsonlLogger
from .manifest import ManifestLoader
from .pattern import PatternAnalyzer
from .result_cache import NoopResultCache, ResultCache, ResultCacheStore
from .search import SearchEngine
from .shard_cache import ShardCache
from .storage import ObjectStore, store_from_config


@dataclass
class AppState:
    config: Config
    logger: JsonlLogger
    store: ObjectStore
    manifest: ManifestLoader
    shards: ShardCache
    results: ResultCache
    analyzer: PatternAnalyzer
    engine: SearchEngine
    clues: ClueRetriever


def create_state(config: Config | None = None, store: ObjectStore | None = None) -> AppState:
    cfg = config or Config.from_env()
    logger = JsonlLogger(level=cfg.log_level)
    object_store = store or store_from_config(cfg)
    manifest = ManifestLoader(object_store, prefix=cfg.index_prefix, logger=logger)
    shards = ShardCache(
        object_store,
        prefix=cfg.index_prefix,
        max_keep=cfg.shard_cache_max_keep,
        logger=logger,
    )
    if cfg.result_cache_enabled:
        results: ResultCache = ResultCacheStore(
            max_keep=cfg.result_cache_max_keep,
            ttl_sec=cfg.result_cache_ttl_sec,
        )
    else:
        results = NoopResultCache()
    analyzer = PatternAnalyzer(
        min_wildcards=cfg.high_cost_min_wildcards,
        wildcard_ratio=cfg.high_cost_wildcard_ratio,
    )
    return AppState(
        config=cfg,
        logger=logger,
        store=object_store,
        manifest=manifest,
        shards=shards,
        results=results,
        analyzer=analyzer,
        engine=SearchEngine(
            manifest=manifest,
            shards=shards,
            results=results,
            analyzer=analyzer,
            logger=logger,
            early_stop_factor=cfg.early_stop_factor,
            max_workers=cfg.fanout_max_workers,
        ),
        clues=ClueRetriever(manifest=manifest, shards=shards, logger=logger),
    )
