from __future__ import annotations

from typing import Any

from .errors import ToolError, ensure
from .pattern import is_valid_answer, is_valid_pattern, normalize_pattern, pattern_tips
from .state import AppState

SERVICE_MESSAGE = "Down Pattern API is running"
OPTIMIZATIONS = [
    "Result caching (5min TTL)",
    "Parallel chunk loading for wildcard patterns",
    "Smart search strategies based on pattern analysis",
    "Early stopping for expensive queries",
]


def _parse_int_param(
    value: Any,
    *,
    name: str,
    default: int,
    min_value: int | None = None,
    max_value: int | None = None,
) -> int:
    raw = default if value is None else value
    if isinstance(raw, bool):
        raise ToolError("invalid_parameter", f"{name} must be an integer")
    try:
        parsed = int(raw)
    except (TypeError, ValueError):
        raise ToolError("invalid_parameter", f"{name} must be an integer")
    if min_value is not None and parsed < min_value:
        raise ToolError("invalid_parameter", f"{name} must be >= {min_value}")
    if max_value is not None and parsed > max_value:
        raise ToolError("invalid_parameter", f"{name} must be <= {max_value}")
    return parsed


def _require_pattern(pattern: Any) -> str:
    ensure(isinstance(pattern, str), "invalid_parameter", "pattern must be a string")
    normalized = normalize_pattern(pattern)
    ensure(
        is_valid_pattern(normalized),
        "invalid_parameter",
        "pattern must contain only letters and '?'",
        {"pattern": pattern},
    )
    return normalized


def find_matching_answers(state: AppState, pattern: str, max_results: int | None = None) -> dict[str, Any]:
    normalized = _require_pattern(pattern)
    limit = _parse_int_param(
        max_results,
        name="max_results",
        default=state.config.default_max_results,
        min_value=1,
        max_value=state.config.max_results_limit,
    )
    outcome = state.engine.run(normalized, limit)
    return {
        "pattern": outcome.pattern,
        "strategy": outcome.strategy,
        "answers": [m.model_dump() for m in outcome.results],
        "count": len(outcome.results),
        "summary": {
            "cache_hit": outcome.cache_hit,
            "shards_total": outcome.shards_total,
            "shards_scanned": outcome.shards_scanned,
            "shards_failed": outcome.shards_failed,
            "early_stopped": outcome.early_stopped,
            "execution_time_ms": outcome.elapsed_ms,
        },
    }


def get_clues(state: AppState, answer: str, max_clues: int | None = None) -> dict[str, Any]:
    ensure(isinstance(answer, str), "invalid_parameter", "answer must be a string")
    normalized = normalize_pattern(answer)
    ensure(is_valid_answer(normalized), "invalid_parameter", "answer must contain only letters", {"answer": answer})
    limit = _parse_int_param(
        max_clues,
        name="max_clues",
        default=state.config.default_max_clues,
        min_value=1,
        max_value=state.config.max_clues_limit,
    )
    return {"answer": normalized, "clues": state.clues.clues(normalized, limit)}


def analyze_pattern(state: AppState, pattern: str) -> dict[str, Any]:
    normalized = _require_pattern(pattern)
    analysis = state.analyzer.analyze(normalized)
    return {
        "pattern": normalized,
        "analysis": analysis.to_dict(),
        "tips": pattern_tips(analysis),
    }


def service_status(state: AppState) -> dict[str, Any]:
    out: dict[str, Any] = {
        "message": SERVICE_MESSAGE,
        "status": "ok",
        "optimizations": list(OPTIMIZATIONS),
        "manifest_loaded": state.manifest.loaded,
        "shard_cache_size": state.shards.size,
        "result_cache_size": state.results.size,
    }
    manifest = state.manifest.manifest
    if manifest is not None:
        out["totalEntries"] = manifest.total_entries
        out["chunkCount"] = manifest.chunk_count
        out["buildTime"] = manifest.build_time.isoformat()
    return out
