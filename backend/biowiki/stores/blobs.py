"""
Biowiki — Content-Addressed Blob Store
=======================================

What:  Append-only key/value files where the key is the SHA-256 hex digest
       of the value.
Why:   Identical content always maps to the same file, so rewriting unchanged
       content is a no-op and a file, once observed, never changes.
How:   put() hashes the bytes, checks for an existing file, and only then
       writes through a temporary sibling + os.replace so a reader never sees
       a partially written value.

The layer only knows "directory + optional suffix"; VersionStore puts page
snapshots on it as versions/<hash>.json.
"""

import hashlib
import logging
import os
import re
import uuid
from pathlib import Path
from typing import List

import aiofiles

from biowiki.exceptions import NotFoundError, StorageIOError

logger = logging.getLogger(__name__)

_KEY_RE = re.compile(r"^[0-9a-f]{64}$")


def content_key(data: bytes) -> str:
    """SHA-256 hex digest: 64 lowercase, zero-padded hex characters."""
    return hashlib.sha256(data).hexdigest()


def is_valid_key(key: str) -> bool:
    return bool(_KEY_RE.fullmatch(key))


async def write_atomic(path: Path, data: bytes) -> None:
    """
    Write `data` to `path` so that the file is fully replaced or untouched.

    The bytes go to a uniquely named temporary file in the same directory
    first; os.replace is atomic within one filesystem.
    """
    tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex[:8]}.tmp")
    try:
        async with aiofiles.open(tmp_path, "wb") as f:
            await f.write(data)
        os.replace(tmp_path, path)
    except OSError:
        if tmp_path.exists():
            tmp_path.unlink()
        raise


class ContentAddressedStore:
    """
    Write-once files named <sha256><suffix> inside one directory.

    The directory is created lazily by the first put(); reading from a store
    whose directory does not exist behaves like an empty store.
    """

    def __init__(self, directory: Path, suffix: str = ""):
        self.directory = Path(directory)
        self.suffix = suffix

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}{self.suffix}"

    def contains(self, key: str) -> bool:
        return is_valid_key(key) and self.path_for(key).is_file()

    def keys(self) -> List[str]:
        if not self.directory.exists():
            return []
        try:
            entries = list(self.directory.iterdir())
        except OSError as e:
            raise StorageIOError(
                message="Could not list stored versions",
                context={"path": str(self.directory), "os_error": str(e)},
            )
        keys = []
        for entry in entries:
            if not entry.is_file() or not entry.name.endswith(self.suffix):
                continue
            key = entry.name[: len(entry.name) - len(self.suffix)] if self.suffix else entry.name
            if is_valid_key(key):
                keys.append(key)
        return sorted(keys)

    async def put(self, data: bytes) -> str:
        """
        Store `data` unless an identical value is already present.

        Returns the key in both cases.
        """
        key = content_key(data)
        path = self.path_for(key)
        if path.exists():
            logger.debug("Blob %s already stored in %s", key[:12], self.directory)
            return key
        try:
            self.directory.mkdir(exist_ok=True)
            await write_atomic(path, data)
        except OSError as e:
            logger.error("Failed to store blob at %s: %s", path, str(e))
            raise StorageIOError(
                message="Failed to store version data",
                context={"path": str(path), "os_error": str(e)},
            )
        logger.info("Blob %s stored in %s (%d bytes)", key[:12], self.directory, len(data))
        return key

    async def get(self, key: str) -> bytes:
        if not is_valid_key(key):
            raise NotFoundError(resource="version", resource_id=key)
        path = self.path_for(key)
        try:
            async with aiofiles.open(path, "rb") as f:
                return await f.read()
        except FileNotFoundError:
            raise NotFoundError(resource="version", resource_id=key)
        except OSError as e:
            raise StorageIOError(
                message="Failed to read version data",
                context={"path": str(path), "os_error": str(e)},
            )
