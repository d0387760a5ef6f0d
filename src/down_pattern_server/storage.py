"""Object store backends consumed by the lookup engine.

Only a get-by-key contract is needed: ``get`` returns the object bytes, or
``None`` when the key does not exist. Transient failures raise
``StorageUnavailable``; nothing here retries.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .config import Config
from .errors import StorageUnavailable
from .path_guard import normalize_object_key, resolve_inside_root

S3_MISSING_CODES = {"NoSuchKey", "404", "NotFound"}


class ObjectStore(Protocol):
    def get(self, key: str) -> bytes | None: ...


class LocalObjectStore:
    """Objects stored as files below ``root``; the key is the relative path."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def get(self, key: str) -> bytes | None:
        path = resolve_inside_root(self.root, key)
        if not path.is_file():
            return None
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageUnavailable(f"failed to read {key}", {"key": key}) from e


class S3ObjectStore:
    """S3 (or R2 / any S3-compatible endpoint) bucket store."""

    def __init__(self, bucket: str, client: Any) -> None:
        self.bucket = bucket
        self.client = client

    @classmethod
    def from_config(cls, config: Config) -> "S3ObjectStore":
        client = boto3.client(
            "s3",
            endpoint_url=config.s3_endpoint_url,
            region_name=config.s3_region,
        )
        return cls(bucket=config.s3_bucket or "", client=client)

    def get(self, key: str) -> bytes | None:
        normalized = normalize_object_key(key)
        try:
            resp = self.client.get_object(Bucket=self.bucket, Key=normalized)
            return resp["Body"].read()
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in S3_MISSING_CODES:
                return None
            raise StorageUnavailable(
                f"s3 get_object failed for {normalized}",
                {"key": normalized, "bucket": self.bucket, "error_code": code},
            ) from e
        except BotoCoreError as e:
            raise StorageUnavailable(
                f"s3 get_object failed for {normalized}",
                {"key": normalized, "bucket": self.bucket},
            ) from e


def store_from_config(config: Config) -> ObjectStore:
    if config.storage_backend == "s3":
        return S3ObjectStore.from_config(config)
    return LocalObjectStore(config.data_root)
