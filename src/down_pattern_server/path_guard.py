from __future__ import annotations

import re
from pathlib import Path, PurePosixPath

from .errors import ensure

WINDOWS_DRIVE_RE = re.compile(r"^[a-zA-Z]:")


def normalize_object_key(key: str) -> str:
    ensure(bool(key and key.strip()), "invalid_parameter", "object key is required")
    canonical = key.replace("\\", "/").strip()
    ensure(not canonical.startswith("/"), "invalid_parameter", "absolute object key is not allowed")
    ensure(not WINDOWS_DRIVE_RE.match(canonical), "invalid_parameter", "absolute object key is not allowed")

    parts = []
    for part in PurePosixPath(canonical).parts:
        if part in {"", "."}:
            continue
        ensure(part != "..", "invalid_parameter", "parent traversal is not allowed", {"key": key})
        parts.append(part)
    ensure(bool(parts), "invalid_parameter", "object key is empty after normalization")
    return "/".join(parts)


def join_key(prefix: str, name: str) -> str:
    if not prefix:
        return normalize_object_key(name)
    return normalize_object_key(f"{prefix.strip('/')}/{name}")


def resolve_inside_root(root: Path, key: str) -> Path:
    normalized = normalize_object_key(key)
    root_real = root.resolve()
    candidate = (root / normalized).resolve()
    ensure(
        candidate == root_real or root_real in candidate.parents,
        "invalid_parameter",
        "object key escapes the store root",
        {"key": normalized},
    )
    return candidate
