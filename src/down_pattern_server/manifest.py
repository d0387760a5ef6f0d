from __future__ import annotations

import re
import threading

from pydantic import ValidationError

from .errors import ManifestCorrupt, ManifestUnavailable, StorageUnavailable, ToolError
from .logging_jsonl import JsonlLogger
from .models import Manifest
from .path_guard import join_key
from .pattern import WILDCARD
from .storage import ObjectStore

MANIFEST_NAME = "manifest.json"
BUCKET_PLACEHOLDER = "_"
BUCKET_INVALID_RE = re.compile(r"[^A-Z0-9]")


def sanitize_bucket(ch: str) -> str:
    return BUCKET_INVALID_RE.sub(BUCKET_PLACEHOLDER, ch)


class ManifestLoader:
    """Holds the shard directory once it has been fetched.

    The first successful ``ensure_loaded`` pins the manifest for the life of
    the process. Concurrent first callers serialize on a lock so only one of
    them fetches. A failed load leaves nothing cached; the next call retries.
    """

    def __init__(self, store: ObjectStore, *, prefix: str, logger: JsonlLogger | None = None) -> None:
        self.store = store
        self.key = join_key(prefix, MANIFEST_NAME)
        self.logger = logger or JsonlLogger()
        self._manifest: Manifest | None = None
        self._lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self._manifest is not None

    @property
    def manifest(self) -> Manifest | None:
        return self._manifest

    def ensure_loaded(self) -> Manifest:
        manifest = self._manifest
        if manifest is not None:
            return manifest
        with self._lock:
            if self._manifest is None:
                self._manifest = self._fetch()
            return self._manifest

    def _fetch(self) -> Manifest:
        try:
            raw = self.store.get(self.key)
        except StorageUnavailable:
            raise
        except ToolError as e:
            self.logger.event("manifest_rejected", level="error", key=self.key, code=e.code)
            raise ManifestUnavailable("shard manifest rejected by store", {"key": self.key}) from e
        if raw is None:
            self.logger.event("manifest_missing", level="error", key=self.key)
            raise ManifestUnavailable("shard manifest not found", {"key": self.key})
        try:
            manifest = Manifest.model_validate_json(raw)
        except ValidationError as e:
            self.logger.event("manifest_corrupt", level="error", key=self.key, errors=e.error_count())
            raise ManifestCorrupt("shard manifest could not be decoded", {"key": self.key}) from e
        self.logger.event(
            "manifest_loaded",
            level="info",
            key=self.key,
            chunk_count=manifest.chunk_count,
            total_entries=manifest.total_entries,
        )
        return manifest

    def shard_ids_for_pattern(self, pattern: str) -> list[str]:
        """Candidate shards for an uppercase pattern.

        A literal first character narrows to a single bucket; a wildcard
        first character selects every bucket registered for the length.
        """
        if not pattern:
            return []
        by_bucket = self.ensure_loaded().chunks.get(len(pattern))
        if not by_bucket:
            return []
        first = pattern[0]
        if first == WILDCARD:
            return list(by_bucket.values())
        shard_id = by_bucket.get(sanitize_bucket(first))
        return [shard_id] if shard_id else []

    def shard_id_for_answer(self, answer: str) -> str | None:
        if not answer:
            return None
        by_bucket = self.ensure_loaded().chunks.get(len(answer))
        if not by_bucket:
            return None
        return by_bucket.get(sanitize_bucket(answer[0]))
