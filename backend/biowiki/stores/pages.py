"""
Biowiki — Page Store
=====================

What:  A single page: its directory, its current detail, its history and
       its attachments.
Why:   The page directory name is the page's identity. page.json must agree
       with it, and every write must leave page.json and the version history
       consistent with each other.
How:   open() checks the directory and the identity invariant; create() and
       update() share one write path that replaces page.json atomically and
       records the same bytes as a content-addressed version.

On-disk layout:
    <web>/<page>/
    ├── page.json              current detail (pretty JSON)
    ├── versions/<sha256>.json immutable snapshots, one per distinct content
    └── attachments/<file>     raw attachment bytes
"""

import logging
import shutil
from pathlib import Path
from typing import List

import aiofiles
from pydantic import ValidationError as PydanticValidationError

from biowiki.exceptions import (
    BiowikiError,
    InvalidPathError,
    NameMismatchError,
    NotDirectoryError,
    NotFoundError,
    OverwriteError,
    SerializationError,
    StorageIOError,
    Utf8Error,
)
from biowiki.schemas.wiki import (
    AttachmentStub,
    AttachmentUpload,
    PageDetail,
    VersionStub,
    page_detail_bytes,
)
from biowiki.stores.attachments import Attachment, AttachmentStore
from biowiki.stores.blobs import write_atomic
from biowiki.stores.versions import VersionStore

logger = logging.getLogger(__name__)

PAGE_FILENAME = "page.json"


def _directory_name(directory: Path) -> str:
    name = directory.name
    if not name:
        raise InvalidPathError(name=str(directory))
    try:
        # Undecodable bytes survive in str paths as lone surrogates
        name.encode("utf-8")
    except UnicodeEncodeError:
        raise Utf8Error(context={"path": repr(directory)})
    return name


class Page:
    """
    A page bound to a directory.

    Constructing a Page touches nothing on disk; Web.new_page() uses that to
    build a page that create() then persists.
    """

    def __init__(self, directory: Path, detail: PageDetail):
        self.directory = Path(directory)
        self.detail = detail
        self.versions = VersionStore(self.directory)
        self.attachments = AttachmentStore(self.directory)

    @property
    def name(self) -> str:
        return self.detail.name

    @property
    def page_path(self) -> Path:
        return self.directory / PAGE_FILENAME

    # ── Opening ───────────────────────────────────────────────────────────

    @classmethod
    async def open(cls, directory: Path) -> "Page":
        """
        Load the page stored in `directory`.

        Raises:
            NotFoundError:      directory or page.json missing
            NotDirectoryError:  path exists but is a file
            InvalidPathError:   path has no final component
            Utf8Error:          directory name is not valid UTF-8
            SerializationError: page.json is not a valid PageDetail
            NameMismatchError:  page.json names a different page
            StorageIOError:     any other OS error
        """
        directory = Path(directory)
        if not directory.exists():
            raise NotFoundError(resource="page", resource_id=directory.name)
        if not directory.is_dir():
            raise NotDirectoryError(path=str(directory))
        expected_name = _directory_name(directory)

        page_path = directory / PAGE_FILENAME
        try:
            async with aiofiles.open(page_path, "rb") as f:
                data = await f.read()
        except FileNotFoundError:
            raise NotFoundError(resource="page", resource_id=expected_name)
        except OSError as e:
            logger.error("Failed to read %s: %s", page_path, str(e))
            raise StorageIOError(
                message="Failed to read page",
                context={"path": str(page_path), "os_error": str(e)},
            )

        try:
            detail = PageDetail.model_validate_json(data)
        except PydanticValidationError as e:
            logger.error("Page file %s is unreadable: %s", page_path, str(e))
            raise SerializationError(
                message="Stored page could not be read",
                context={"page": expected_name, "error_count": e.error_count()},
            )

        if detail.name != expected_name:
            raise NameMismatchError(expected=expected_name, actual=detail.name)

        return cls(directory, detail)

    # ── Writing ───────────────────────────────────────────────────────────

    async def create(self) -> str:
        """
        Persist a new page. Returns the hash of the first version.

        Raises:
            OverwriteError: the page directory already exists
            StorageIOError: mkdir or write failed
        """
        if self.directory.exists():
            raise OverwriteError(resource="page", name=self.directory.name)
        try:
            self.directory.mkdir()
        except FileExistsError:
            raise OverwriteError(resource="page", name=self.directory.name)
        except OSError as e:
            raise StorageIOError(
                message="Failed to create page",
                context={"path": str(self.directory), "os_error": str(e)},
            )
        try:
            return await self._write()
        except BiowikiError:
            # A directory without page.json would block every later create
            shutil.rmtree(self.directory, ignore_errors=True)
            raise

    async def update(self) -> str:
        """
        Replace the current detail. Returns the hash of the resulting version.

        Raises:
            NotFoundError: the page directory does not exist
            StorageIOError: write failed
        """
        if not self.directory.exists():
            raise NotFoundError(resource="page", resource_id=self.directory.name)
        return await self._write()

    async def _write(self) -> str:
        data = page_detail_bytes(self.detail)
        try:
            await write_atomic(self.page_path, data)
        except OSError as e:
            logger.error("Failed to write %s: %s", self.page_path, str(e))
            raise StorageIOError(
                message="Failed to save page",
                context={"path": str(self.page_path), "os_error": str(e)},
            )
        version_hash = await self.versions.record(data)
        logger.info("Page %s written (version %s)", self.directory.name, version_hash[:12])
        return version_hash

    # ── Versions ──────────────────────────────────────────────────────────

    def list_versions(self) -> List[VersionStub]:
        return self.versions.list()

    async def get_version(self, version_hash: str) -> PageDetail:
        return await self.versions.get(version_hash)

    # ── Attachments ───────────────────────────────────────────────────────

    def list_attachments(self) -> List[AttachmentStub]:
        return self.attachments.list()

    def get_attachment(self, file_name: str) -> Attachment:
        return self.attachments.open(file_name)

    async def save_attachment(self, upload: AttachmentUpload) -> Attachment:
        return await self.attachments.save(upload)

    def __repr__(self) -> str:
        return f"Page({str(self.directory)!r})"
