from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Callable

import pytest

from down_pattern_server.config import Config
from down_pattern_server.errors import StorageUnavailable
from down_pattern_server.state import AppState, create_state
from down_pattern_server.storage import LocalObjectStore

PREFIX = "chunked-indexes"

SHARDS: dict[str, dict[str, Any]] = {
    "chunk_5_A.json": {
        "answers": [
            {"answer": "APPLE", "count": 12},
            {"answer": "ANGLE", "count": 7},
            {"answer": "AMPLE", "count": 7},
            {"answer": "ADOPT", "count": 3},
        ],
        "clues": {
            "APPLE": ["Fruit", "Fruit", "Big ___", "Newton's inspiration"],
            "ANGLE": ["Slant"],
        },
    },
    "chunk_5_B.json": {
        "answers": [
            {"answer": "BAGEL", "count": 5},
            {"answer": "BAPLE", "count": 1},
        ],
        "clues": {"BAGEL": ["Lox holder"]},
    },
    "chunk_5_S.json": {
        "answers": [{"answer": "SAPLE", "count": 9}],
        "clues": {},
    },
    "chunk_6_A.json": {
        "answers": [{"answer": "APPLES", "count": 4}],
        "clues": {"APPLES": ["Orchard yield"]},
    },
}

CHUNKS: dict[str, dict[str, str]] = {
    "5": {"A": "chunk_5_A.json", "B": "chunk_5_B.json", "S": "chunk_5_S.json"},
    "6": {"A": "chunk_6_A.json"},
}


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def write_index(
    root: Path,
    shards: dict[str, dict[str, Any]],
    chunks: dict[str, dict[str, str]],
    *,
    prefix: str = PREFIX,
) -> Path:
    manifest = {
        "totalEntries": sum(sum(a["count"] for a in s["answers"]) for s in shards.values()),
        "chunkCount": sum(len(v) for v in chunks.values()),
        "buildTime": "2024-05-01T12:00:00.000Z",
        "chunks": chunks,
    }
    _write(root / prefix / "manifest.json", json.dumps(manifest))
    for name, shard in shards.items():
        _write(root / prefix / name, json.dumps(shard))
    return root


class CountingStore:
    """Wraps a store and records every key requested."""

    def __init__(self, inner: Any, fail_keys: set[str] | None = None) -> None:
        self.inner = inner
        self.fail_keys = fail_keys or set()
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def get(self, key: str) -> bytes | None:
        with self._lock:
            self.calls.append(key)
        if key in self.fail_keys:
            raise StorageUnavailable(f"injected failure for {key}", {"key": key})
        return self.inner.get(key)

    def count(self, suffix: str) -> int:
        with self._lock:
            return sum(1 for key in self.calls if key.endswith(suffix))


@pytest.fixture()
def data_root(tmp_path: Path) -> Path:
    return write_index(tmp_path / "data", SHARDS, CHUNKS)


@pytest.fixture()
def counting_store(data_root: Path) -> CountingStore:
    return CountingStore(LocalObjectStore(data_root))


@pytest.fixture()
def make_counting_store() -> Callable[..., CountingStore]:
    def _make(root: Path, fail_keys: set[str] | None = None) -> CountingStore:
        return CountingStore(LocalObjectStore(root), fail_keys=fail_keys)

    return _make


@pytest.fixture()
def state(data_root: Path, counting_store: CountingStore, monkeypatch: pytest.MonkeyPatch) -> AppState:
    monkeypatch.setenv("STORAGE_BACKEND", "local")
    monkeypatch.setenv("DATA_ROOT", str(data_root))
    monkeypatch.setenv("LOG_LEVEL", "error")
    monkeypatch.setenv("MAX_RESULTS_LIMIT", "500")

    cfg = Config.from_env()
    return create_state(cfg, store=counting_store)


def link_outside_root(root: Path, name: str, outside: Path, *, prefix: str = PREFIX) -> Path:
    """Replace an object under the store with a symlink leaving the root."""
    target = root / prefix / name
    outside.mkdir(parents=True, exist_ok=True)
    escaped = outside / name
    escaped.write_bytes(target.read_bytes())
    target.unlink()
    target.symlink_to(escaped)
    return target
