from __future__ import annotations

import argparse
import time
from typing import Any, Callable

from .errors import ToolError
from .state import AppState, create_state
from .tools_lookup import analyze_pattern as analyze_pattern_impl
from .tools_lookup import find_matching_answers as find_matching_answers_impl
from .tools_lookup import get_clues as get_clues_impl
from .tools_lookup import service_status as service_status_impl

try:
    from fastmcp import FastMCP
except Exception as e:  # pragma: no cover - import guard for runtime setup
    raise RuntimeError(
        "fastmcp is required to run down_pattern_server. Install dependencies with: pip install -e ."
    ) from e


def _pattern_type(pattern: Any) -> str | None:
    if not isinstance(pattern, str) or not pattern:
        return None
    return "wildcard" if pattern.startswith("?") else "literal"


def _execute(state: AppState, tool: str, fn: Callable[..., dict[str, Any]], *args: Any, **kwargs: Any) -> dict[str, Any]:
    started = time.monotonic()
    try:
        out = fn(*args, **kwargs)
        fields: dict[str, Any] = {}
        if isinstance(out, dict):
            if tool == "find_matching_answers":
                fields["pattern_type"] = _pattern_type(out.get("pattern"))
                fields["strategy"] = out.get("strategy")
                fields["result_count"] = out.get("count")
                summary = out.get("summary") or {}
                for key in ("cache_hit", "shards_scanned", "shards_failed", "early_stopped"):
                    if key in summary:
                        fields[key] = summary[key]
            elif tool == "get_clues":
                clues = out.get("clues")
                fields["result_count"] = len(clues) if isinstance(clues, list) else None
            elif tool == "analyze_pattern":
                fields["pattern_type"] = _pattern_type(out.get("pattern"))
                analysis = out.get("analysis") or {}
                fields["high_cost"] = analysis.get("isHighCostPattern")
        state.logger.emit(tool=tool, ok=True, elapsed_ms=int((time.monotonic() - started) * 1000), **fields)
        return out
    except ToolError as e:
        state.logger.emit(tool=tool, ok=False, level="error", elapsed_ms=int((time.monotonic() - started) * 1000), code=e.code)
        return e.to_dict()
    except Exception as e:  # pragma: no cover - defensive guard
        state.logger.emit(tool=tool, ok=False, level="error", elapsed_ms=int((time.monotonic() - started) * 1000), code="conflict")
        return ToolError(code="conflict", message=str(e)).to_dict()


def create_app(state: AppState | None = None) -> FastMCP:
    app_state = state or create_state()
    mcp = FastMCP("down_pattern_server")

    @mcp.tool()
    def find_matching_answers(pattern: str, max_results: int | None = None) -> dict[str, Any]:
        return _execute(
            app_state,
            "find_matching_answers",
            lambda: find_matching_answers_impl(app_state, pattern=pattern, max_results=max_results),
        )

    @mcp.tool()
    def get_clues(answer: str, max_clues: int | None = None) -> dict[str, Any]:
        return _execute(
            app_state,
            "get_clues",
            lambda: get_clues_impl(app_state, answer=answer, max_clues=max_clues),
        )

    @mcp.tool()
    def analyze_pattern(pattern: str) -> dict[str, Any]:
        return _execute(app_state, "analyze_pattern", lambda: analyze_pattern_impl(app_state, pattern=pattern))

    @mcp.tool()
    def service_status() -> dict[str, Any]:
        return _execute(app_state, "service_status", lambda: service_status_impl(app_state))

    return mcp


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--stdio", action="store_true", default=False)
    args = parser.parse_args()
    mcp = create_app()
    if args.stdio:
        try:
            mcp.run(transport="stdio")
        except TypeError:
            mcp.run()
    else:
        mcp.run()


if __name__ == "__main__":
    main()
