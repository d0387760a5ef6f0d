from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

STORAGE_BACKENDS = {"local", "s3"}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Config:
    storage_backend: str = "local"
    data_root: Path = Path("data")
    s3_bucket: str | None = None
    s3_endpoint_url: str | None = None
    s3_region: str | None = None
    index_prefix: str = "chunked-indexes"
    log_level: str = "warning"
    shard_cache_max_keep: int = 10
    result_cache_max_keep: int = 100
    result_cache_ttl_sec: float = 300.0
    early_stop_factor: int = 2
    high_cost_min_wildcards: int = 3
    high_cost_wildcard_ratio: float = 0.6
    fanout_max_workers: int = 8
    default_max_results: int = 50
    max_results_limit: int = 500
    default_max_clues: int = 10
    max_clues_limit: int = 100
    result_cache_enabled: bool = True

    @classmethod
    def from_env(cls) -> "Config":
        storage_backend = os.getenv("STORAGE_BACKEND", "local").strip().lower()
        if storage_backend not in STORAGE_BACKENDS:
            raise ValueError("STORAGE_BACKEND must be local or s3")
        s3_bucket = os.getenv("S3_BUCKET") or None
        if storage_backend == "s3" and not s3_bucket:
            raise ValueError("S3_BUCKET is required when STORAGE_BACKEND=s3")

        return cls(
            storage_backend=storage_backend,
            data_root=Path(os.getenv("DATA_ROOT", "data")).expanduser().resolve(),
            s3_bucket=s3_bucket,
            s3_endpoint_url=os.getenv("S3_ENDPOINT_URL") or None,
            s3_region=os.getenv("S3_REGION") or None,
            index_prefix=os.getenv("INDEX_PREFIX", "chunked-indexes").strip("/"),
            log_level=os.getenv("LOG_LEVEL", "warning"),
            shard_cache_max_keep=_env_int("SHARD_CACHE_MAX_KEEP", 10),
            result_cache_max_keep=_env_int("RESULT_CACHE_MAX_KEEP", 100),
            result_cache_ttl_sec=_env_float("RESULT_CACHE_TTL_SEC", 300.0),
            early_stop_factor=_env_int("EARLY_STOP_FACTOR", 2),
            high_cost_min_wildcards=_env_int("HIGH_COST_MIN_WILDCARDS", 3),
            high_cost_wildcard_ratio=_env_float("HIGH_COST_WILDCARD_RATIO", 0.6),
            fanout_max_workers=_env_int("FANOUT_MAX_WORKERS", 8),
            default_max_results=_env_int("DEFAULT_MAX_RESULTS", 50),
            max_results_limit=_env_int("MAX_RESULTS_LIMIT", 500),
            default_max_clues=_env_int("DEFAULT_MAX_CLUES", 10),
            max_clues_limit=_env_int("MAX_CLUES_LIMIT", 100),
            result_cache_enabled=_env_bool("RESULT_CACHE_ENABLED", True),
        )
