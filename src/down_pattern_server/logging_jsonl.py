from __future__ import annotations

import json
import sys
import time
from typing import Any

LEVELS = {"debug": 10, "info": 20, "warning": 30, "error": 40}


class JsonlLogger:
    def __init__(self, level: str = "error") -> None:
        self.level = level.strip().lower() if level else "error"
        self._threshold = LEVELS.get(self.level, LEVELS["error"])

    def enabled(self, level: str) -> bool:
        return LEVELS.get(level, LEVELS["error"]) >= self._threshold

    def _write(self, level: str, fields: dict[str, Any]) -> None:
        payload: dict[str, Any] = {"ts": int(time.time() * 1000), "level": level}
        payload.update(fields)
        print(json.dumps(payload, ensure_ascii=False, default=str), file=sys.stderr)

    def emit(self, *, tool: str, ok: bool, elapsed_ms: int, level: str = "info", **fields: Any) -> None:
        if not self.enabled(level):
            return
        self._write(level, {"tool": tool, "ok": ok, "elapsed_ms": elapsed_ms, **fields})

    def event(self, name: str, *, level: str = "info", **fields: Any) -> None:
        if not self.enabled(level):
            return
        self._write(level, {"event": name, **fields})
