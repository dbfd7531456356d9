"""
Biowiki — Webs and the Web Collection
======================================

What:  WebCollection owns the storage root (one directory per web);
       Web owns the page directories inside one web.
Why:   Resolution is strictly one level at a time:
       WebCollection.get() → Web.open_page() → Page.
Who:   WikiService resolves every request through these two classes.
"""

import logging
from pathlib import Path
from typing import List, Optional

from biowiki.exceptions import InvalidPathError, NotFoundError, OverwriteError, StorageIOError
from biowiki.schemas.wiki import PageDetail, PageStub, WebStub, is_valid_name
from biowiki.stores.pages import Page

logger = logging.getLogger(__name__)


def _subdirectory_names(directory: Path) -> List[str]:
    """Names of the immediate subdirectories, sorted."""
    try:
        entries = list(directory.iterdir())
    except FileNotFoundError:
        raise NotFoundError(resource="directory", resource_id=directory.name)
    except OSError as e:
        logger.error("Failed to list %s: %s", directory, str(e))
        raise StorageIOError(
            message="Could not list directory",
            context={"path": str(directory), "os_error": str(e)},
        )
    return sorted(entry.name for entry in entries if entry.is_dir())


class Web:
    """One web: a named directory of pages."""

    def __init__(self, name: str, directory: Path):
        self.name = name
        self.directory = Path(directory)

    def page_directory(self, name: str) -> Path:
        if not is_valid_name(name):
            raise InvalidPathError(name=name)
        return self.directory / name

    def list_pages(self) -> List[PageStub]:
        return [PageStub(name=name) for name in _subdirectory_names(self.directory)]

    async def open_page(self, name: str) -> Page:
        return await Page.open(self.page_directory(name))

    def new_page(self, detail: PageDetail) -> Page:
        """Build an unsaved page; call create() on it to persist."""
        return Page(self.page_directory(detail.name), detail)

    def __repr__(self) -> str:
        return f"Web({self.name!r})"


class WebCollection:
    """
    All webs under one root directory.

    Instances are created once per application and injected into request
    handling; see biowiki.locks for how concurrent access is serialized.
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    def list(self) -> List[WebStub]:
        """
        Raises:
            NotFoundError:  the root does not exist
            StorageIOError: the root cannot be read
        """
        return [WebStub(name=name) for name in _subdirectory_names(self.root)]

    def get(self, name: str) -> Optional[Web]:
        """The web called `name`, or None if there is no such directory."""
        if not is_valid_name(name):
            return None
        directory = self.root / name
        if directory.is_dir():
            return Web(name, directory)
        return None

    def create(self, name: str) -> Web:
        """
        Raises:
            InvalidPathError: `name` is not a single path component
            OverwriteError:   something named `name` already exists in the root
            StorageIOError:   mkdir failed
        """
        if not is_valid_name(name):
            raise InvalidPathError(name=name)
        directory = self.root / name
        if directory.exists():
            raise OverwriteError(resource="web", name=name)
        try:
            directory.mkdir()
        except FileExistsError:
            raise OverwriteError(resource="web", name=name)
        except OSError as e:
            logger.error("Failed to create web %s: %s", directory, str(e))
            raise StorageIOError(
                message="Failed to create web",
                context={"path": str(directory), "os_error": str(e)},
            )
        logger.info("Web created: %s", name)
        return Web(name, directory)
