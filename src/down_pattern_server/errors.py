from __future__ import annotations

from dataclasses import dataclass
from typing import Any

ALLOWED_ERROR_CODES = {
    "invalid_parameter",
    "manifest_unavailable",
    "manifest_corrupt",
    "shard_not_found",
    "shard_corrupt",
    "storage_unavailable",
    "conflict",
}


@dataclass
class ToolError(Exception):
    code: str
    message: str
    details: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        if self.code not in ALLOWED_ERROR_CODES:
            self.code = "invalid_parameter"

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            data["details"] = self.details
        return data


def ensure(condition: bool, code: str, message: str, details: dict[str, Any] | None = None) -> None:
    if not condition:
        raise ToolError(code=code, message=message, details=details)


class ManifestUnavailable(ToolError):
    """The manifest object is missing from the store."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__("manifest_unavailable", message, details)


class ManifestCorrupt(ToolError):
    """The manifest object exists but cannot be decoded."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__("manifest_corrupt", message, details)


class StorageUnavailable(ToolError):
    """Transient backend failure; the request is not retried."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__("storage_unavailable", message, details)


class ShardLoadError(ToolError):
    pass


class ShardNotFound(ShardLoadError):
    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__("shard_not_found", message, details)


class ShardCorrupt(ShardLoadError):
    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__("shard_corrupt", message, details)
