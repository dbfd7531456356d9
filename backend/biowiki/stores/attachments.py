"""
Biowiki — Attachment Store
===========================

What:  Raw binary files under a page's attachments/ directory.
Why:   Pages can carry images and other files next to their text.
How:   Uploads arrive base64-encoded in JSON, are decoded here and written
       (or overwritten) as-is. Attachments have no history.
Who:   Owned by Page; WikiService validates upload filenames before save().

Filename rules:
    Two validators exist on purpose:
    - uploads:      ^\\w+\\.\\w+$   word characters only, exactly one dot
    - files on disk: ^.+\\..+$     any non-empty stem, used when listing
    The strict one keeps user input from naming hidden files or paths; the
    permissive one still lists files placed in the directory by other means.

Content type:
    Derived from the extension only, case-insensitively. No content sniffing.
"""

import base64
import binascii
import logging
import re
from pathlib import Path
from typing import List

import aiofiles

from biowiki.exceptions import DecodeError, NotFoundError, StorageIOError
from biowiki.schemas.wiki import AttachmentStub, AttachmentUpload, is_valid_name
from biowiki.stores.blobs import write_atomic

logger = logging.getLogger(__name__)

ATTACHMENTS_DIRECTORY = "attachments"

UPLOAD_FILE_NAME_RE = re.compile(r"^\w+\.\w+$")
STORED_FILE_NAME_RE = re.compile(r"^.+\..+$")

OCTET_STREAM = "application/octet-stream"

# Lower-cased extension → served Content-Type
MIME_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
}


def is_valid_upload_name(file_name: str) -> bool:
    return bool(UPLOAD_FILE_NAME_RE.fullmatch(file_name))


def is_valid_stored_name(file_name: str) -> bool:
    return is_valid_name(file_name) and bool(STORED_FILE_NAME_RE.fullmatch(file_name))


def mime_type_for(file_name: str) -> str:
    _, dot, ext = file_name.rpartition(".")
    if not dot or not ext:
        return OCTET_STREAM
    return MIME_TYPES.get(ext.lower(), OCTET_STREAM)


class Attachment:
    """An existing attachment file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    @property
    def file_name(self) -> str:
        return self.path.name

    @property
    def mime_type(self) -> str:
        return mime_type_for(self.path.name)

    async def data(self) -> bytes:
        """Read the whole file into memory."""
        try:
            async with aiofiles.open(self.path, "rb") as f:
                return await f.read()
        except OSError as e:
            logger.error("Failed to read attachment %s: %s", self.path, str(e))
            raise StorageIOError(
                message="Failed to read attachment",
                context={"path": str(self.path), "os_error": str(e)},
            )


class AttachmentStore:
    """The attachments/ directory of one page."""

    def __init__(self, page_dir: Path):
        self.directory = Path(page_dir) / ATTACHMENTS_DIRECTORY

    def list(self) -> List[AttachmentStub]:
        if not self.directory.exists():
            return []
        try:
            entries = list(self.directory.iterdir())
        except OSError as e:
            raise StorageIOError(
                message="Could not list attachments",
                context={"path": str(self.directory), "os_error": str(e)},
            )
        names = sorted(
            entry.name
            for entry in entries
            if entry.is_file() and is_valid_stored_name(entry.name)
        )
        return [AttachmentStub(file_name=name) for name in names]

    def open(self, file_name: str) -> Attachment:
        """
        Raises:
            NotFoundError: no such attachment (or a name that cannot exist)
        """
        if not is_valid_name(file_name):
            raise NotFoundError(resource="attachment", resource_id=file_name)
        path = self.directory / file_name
        if not path.is_file():
            raise NotFoundError(resource="attachment", resource_id=file_name)
        return Attachment(path)

    async def save(self, upload: AttachmentUpload) -> Attachment:
        """
        Decode and write an uploaded attachment, replacing any existing file.

        The filename is trusted here; callers validate it first.

        Raises:
            DecodeError: encoded_data is not valid base64
            StorageIOError: directory creation or write failed
        """
        try:
            data = base64.b64decode(upload.encoded_data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise DecodeError(context={"file_name": upload.file_name, "error": str(e)})

        path = self.directory / upload.file_name
        try:
            self.directory.mkdir(exist_ok=True)
            await write_atomic(path, data)
        except OSError as e:
            logger.error("Failed to store attachment at %s: %s", path, str(e))
            raise StorageIOError(
                message="Failed to save attachment",
                context={"path": str(path), "os_error": str(e)},
            )
        logger.info("Attachment stored: %s (%d bytes)", path.name, len(data))
        return Attachment(path)
