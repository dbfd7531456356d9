"""
Biowiki — Wiki Service (Request Orchestrator)
==============================================

What:  One method per wiki route: lock, resolve, validate, call the store,
       return a response model.
Why:   Keeps HTTP handling thin and keeps every store call behind the right
       lock. Client-input checks (body schema, update name, upload filename)
       happen here, before the store is touched.
How:   Composes WebCollection (resolution) and StoreLocks (serialization).
Who:   Called by the catch-all wiki route after PathRouter classification.

Orchestration Flow (PUT /webs/:w/pages/:p):
    ┌──────────┐   ┌─────────────┐   ┌──────────────┐   ┌───────────────┐
    │  Parse   │──▶│ name == :p? │──▶│ lock (w, p)  │──▶│ Page.update() │
    │  body    │   │ else 400    │   │ resolve web  │   │ page + version│
    └──────────┘   └─────────────┘   └──────────────┘   └───────────────┘

Error Handling Strategy:
    Store exceptions propagate unchanged; the global handlers in main.py map
    their kind to a status code. This layer only adds ValidationError and
    NameMismatchError for bad client input, and turns "web does not exist"
    into NotFoundError.
"""

import logging
from typing import List, Tuple, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from biowiki.exceptions import InvalidPathError, NameMismatchError, NotFoundError, ValidationError
from biowiki.locks import StoreLocks
from biowiki.schemas.wiki import (
    AttachmentStub,
    AttachmentUpload,
    PageDetail,
    PageStub,
    VersionStub,
    WebCreate,
    WebStub,
)
from biowiki.stores.attachments import is_valid_upload_name
from biowiki.stores.pages import Page
from biowiki.stores.webs import Web, WebCollection

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class WikiService:
    """
    Business logic layer for wiki operations.

    Holds the shared WebCollection and StoreLocks; both are created once by
    the application and injected here, so tests can build a service over a
    temporary directory.
    """

    def __init__(self, webs: WebCollection, locks: StoreLocks, max_body_size: int):
        self.webs = webs
        self.locks = locks
        self.max_body_size = max_body_size

    # ── Helpers ───────────────────────────────────────────────────────────

    def parse_body(self, model: Type[ModelT], body: bytes) -> ModelT:
        """
        Validate a JSON request body against `model`.

        Raises:
            ValidationError: body too large, not JSON, or wrong shape
        """
        if len(body) > self.max_body_size:
            raise ValidationError(
                message=f"Request body exceeds maximum of {self.max_body_size} bytes",
                field="body",
                context={"size": len(body), "max_size": self.max_body_size},
            )
        try:
            return model.model_validate_json(body)
        except PydanticValidationError as e:
            errors = [
                {"loc": [str(part) for part in err["loc"]], "msg": err["msg"]}
                for err in e.errors()
            ]
            raise ValidationError(
                message=f"Request body is not a valid {model.__name__}",
                field="body",
                context={"errors": errors},
            )

    def _web(self, web_name: str) -> Web:
        web = self.webs.get(web_name)
        if web is None:
            raise NotFoundError(resource="web", resource_id=web_name)
        return web

    async def _page(self, web_name: str, page_name: str) -> Page:
        web = self._web(web_name)
        try:
            return await web.open_page(page_name)
        except InvalidPathError:
            # A URL segment like ".." can never name a page
            raise NotFoundError(resource="page", resource_id=page_name)

    # ── Webs ──────────────────────────────────────────────────────────────

    async def list_webs(self) -> List[WebStub]:
        async with self.locks.hold():
            return self.webs.list()

    async def create_web(self, body: bytes) -> Web:
        request = self.parse_body(WebCreate, body)
        async with self.locks.hold():
            web = self.webs.create(request.name)
        logger.info("Created web %s", web.name)
        return web

    # ── Pages ─────────────────────────────────────────────────────────────

    async def list_pages(self, web_name: str) -> List[PageStub]:
        async with self.locks.hold(web_name):
            return self._web(web_name).list_pages()

    async def create_page(self, web_name: str, body: bytes) -> str:
        """Returns the hash of the page's first version."""
        detail = self.parse_body(PageDetail, body)
        async with self.locks.hold(web_name, detail.name):
            page = self._web(web_name).new_page(detail)
            version_hash = await page.create()
        logger.info("Created page %s/%s", web_name, detail.name)
        return version_hash

    async def show_page(self, web_name: str, page_name: str) -> PageDetail:
        async with self.locks.hold(web_name, page_name):
            page = await self._page(web_name, page_name)
        return page.detail

    async def update_page(self, web_name: str, page_name: str, body: bytes) -> str:
        """
        Replace a page's detail. Returns the hash of the resulting version.

        Raises:
            ValidationError:   malformed body
            NameMismatchError: body names a different page than the URL
            NotFoundError:     web or page does not exist
        """
        detail = self.parse_body(PageDetail, body)
        if detail.name != page_name:
            raise NameMismatchError(expected=page_name, actual=detail.name)
        async with self.locks.hold(web_name, page_name):
            page = self._web(web_name).new_page(detail)
            version_hash = await page.update()
        logger.info("Updated page %s/%s", web_name, page_name)
        return version_hash

    # ── Versions ──────────────────────────────────────────────────────────

    async def list_versions(self, web_name: str, page_name: str) -> List[VersionStub]:
        async with self.locks.hold(web_name, page_name):
            page = await self._page(web_name, page_name)
            return page.list_versions()

    async def show_version(self, web_name: str, page_name: str, version_hash: str) -> PageDetail:
        async with self.locks.hold(web_name, page_name):
            page = await self._page(web_name, page_name)
            return await page.get_version(version_hash)

    # ── Attachments ───────────────────────────────────────────────────────

    async def list_attachments(self, web_name: str, page_name: str) -> List[AttachmentStub]:
        async with self.locks.hold(web_name, page_name):
            page = await self._page(web_name, page_name)
            return page.list_attachments()

    async def create_attachment(self, web_name: str, page_name: str, body: bytes) -> str:
        """
        Store an uploaded attachment. Returns its filename.

        Raises:
            ValidationError: malformed body or filename not <word>.<word>
            DecodeError:     payload is not base64
            NotFoundError:   web or page does not exist
        """
        upload = self.parse_body(AttachmentUpload, body)
        if not is_valid_upload_name(upload.file_name):
            raise ValidationError(
                message=(
                    f"Attachment filename '{upload.file_name}' is not valid. "
                    "Use <name>.<extension> with letters, digits and underscores."
                ),
                field="file_name",
            )
        async with self.locks.hold(web_name, page_name):
            page = await self._page(web_name, page_name)
            attachment = await page.save_attachment(upload)
        logger.info("Saved attachment %s on %s/%s", attachment.file_name, web_name, page_name)
        return attachment.file_name

    async def serve_attachment(
        self, web_name: str, page_name: str, attachment_name: str
    ) -> Tuple[bytes, str]:
        """Returns (content, media type)."""
        async with self.locks.hold(web_name, page_name):
            page = await self._page(web_name, page_name)
            attachment = page.get_attachment(attachment_name)
            return await attachment.data(), attachment.mime_type
