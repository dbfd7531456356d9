"""
Biowiki — Page Version Store
=============================

What:  Immutable snapshots of a page's serialized detail, one file per
       distinct content value: <page>/versions/<sha256>.json.
Why:   Gives every page a history for free: each create/update records the
       bytes it wrote, and rewriting unchanged content adds nothing.
Who:   Owned by Page; only Page records versions.
"""

import logging
from pathlib import Path
from typing import List

from pydantic import ValidationError as PydanticValidationError

from biowiki.exceptions import SerializationError
from biowiki.schemas.wiki import PageDetail, VersionStub
from biowiki.stores.blobs import ContentAddressedStore

logger = logging.getLogger(__name__)

VERSIONS_DIRECTORY = "versions"
VERSION_SUFFIX = ".json"


class VersionStore:
    """Content-addressed PageDetail snapshots under one page directory."""

    def __init__(self, page_dir: Path):
        self.blobs = ContentAddressedStore(Path(page_dir) / VERSIONS_DIRECTORY, VERSION_SUFFIX)

    async def record(self, data: bytes) -> str:
        """Record serialized detail bytes; returns the version hash."""
        return await self.blobs.put(data)

    def exists(self, version_hash: str) -> bool:
        return self.blobs.contains(version_hash)

    def list(self) -> List[VersionStub]:
        return [VersionStub(hash=key) for key in self.blobs.keys()]

    async def get(self, version_hash: str) -> PageDetail:
        """
        Load one snapshot.

        Raises:
            NotFoundError: no version with this hash
            SerializationError: the snapshot is not a valid PageDetail
        """
        data = await self.blobs.get(version_hash)
        try:
            return PageDetail.model_validate_json(data)
        except PydanticValidationError as e:
            logger.error("Version %s is unreadable: %s", version_hash, str(e))
            raise SerializationError(
                message="Stored version could not be read",
                context={"hash": version_hash, "error_count": e.error_count()},
            )
