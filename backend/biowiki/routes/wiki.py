"""
Biowiki — Wiki Route Handlers
==============================

What:  A single catch-all endpoint that serves every /webs/... URL.
Why:   Route shapes are declared once in biowiki.router; FastAPI only has to
       deliver (method, path, body). Adding a route means adding one rule
       and one handler below.
How:   PathRouter.classify() picks the Route, the body (if any) is read, and
       the matching handler calls WikiService and builds the response.
Who:   Wiki API clients.

Caching Strategy:
    - GET .../versions/:hash: immutable, cached for a year
    - everything else: no caching headers (pages change in place)
"""

import logging
from typing import Awaitable, Callable, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response

from biowiki.exceptions import NotFoundError, ValidationError
from biowiki.router import Route, RouteKind, path_router
from biowiki.services.wiki_service import WikiService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Wiki"])

BODY_METHODS = {"POST", "PUT"}
IMMUTABLE_CACHE = "public, max-age=31536000, immutable"

Handler = Callable[[WikiService, Route, bytes], Awaitable[Response]]


def get_wiki_service(request: Request) -> WikiService:
    """Dependency: the WikiService built by create_app()."""
    return request.app.state.wiki_service


def _json(content, status_code: int = 200, headers: Dict[str, str] = None) -> JSONResponse:
    return JSONResponse(content=content, status_code=status_code, headers=headers)


def _model_json(model, headers: Dict[str, str] = None) -> Response:
    return Response(
        content=model.model_dump_json(),
        media_type="application/json",
        headers=headers,
    )


# ══════════════════════════════════════════════════════════════════════════
# Handlers (one per RouteKind)
# ══════════════════════════════════════════════════════════════════════════


async def list_webs(service: WikiService, route: Route, body: bytes) -> Response:
    stubs = await service.list_webs()
    return _json([stub.model_dump() for stub in stubs])


async def create_web(service: WikiService, route: Route, body: bytes) -> Response:
    await service.create_web(body)
    return Response(status_code=201)


async def list_pages(service: WikiService, route: Route, body: bytes) -> Response:
    stubs = await service.list_pages(route.web_name)
    return _json([stub.model_dump() for stub in stubs])


async def create_page(service: WikiService, route: Route, body: bytes) -> Response:
    await service.create_page(route.web_name, body)
    return Response(status_code=201)


async def show_page(service: WikiService, route: Route, body: bytes) -> Response:
    detail = await service.show_page(route.web_name, route.page_name)
    return _model_json(detail)


async def update_page(service: WikiService, route: Route, body: bytes) -> Response:
    await service.update_page(route.web_name, route.page_name, body)
    return Response(status_code=200)


async def list_attachments(service: WikiService, route: Route, body: bytes) -> Response:
    stubs = await service.list_attachments(route.web_name, route.page_name)
    return _json([stub.model_dump() for stub in stubs])


async def create_attachment(service: WikiService, route: Route, body: bytes) -> Response:
    await service.create_attachment(route.web_name, route.page_name, body)
    return Response(status_code=201)


async def serve_attachment(service: WikiService, route: Route, body: bytes) -> Response:
    content, media_type = await service.serve_attachment(
        route.web_name, route.page_name, route.attachment_name
    )
    return Response(content=content, media_type=media_type)


async def list_page_versions(service: WikiService, route: Route, body: bytes) -> Response:
    stubs = await service.list_versions(route.web_name, route.page_name)
    return _json([stub.model_dump() for stub in stubs])


async def show_page_version(service: WikiService, route: Route, body: bytes) -> Response:
    detail = await service.show_version(route.web_name, route.page_name, route.version_hash)
    # Version files are write-once: the same hash always returns the same body
    return _model_json(detail, headers={"Cache-Control": IMMUTABLE_CACHE})


HANDLERS: Dict[RouteKind, Handler] = {
    RouteKind.LIST_WEBS: list_webs,
    RouteKind.CREATE_WEB: create_web,
    RouteKind.LIST_PAGES: list_pages,
    RouteKind.CREATE_PAGE: create_page,
    RouteKind.SHOW_PAGE: show_page,
    RouteKind.UPDATE_PAGE: update_page,
    RouteKind.LIST_ATTACHMENTS: list_attachments,
    RouteKind.CREATE_ATTACHMENT: create_attachment,
    RouteKind.SERVE_ATTACHMENT: serve_attachment,
    RouteKind.LIST_PAGE_VERSIONS: list_page_versions,
    RouteKind.SHOW_PAGE_VERSION: show_page_version,
}


# ══════════════════════════════════════════════════════════════════════════
# Catch-all endpoint
# ══════════════════════════════════════════════════════════════════════════


@router.api_route(
    "/{wiki_path:path}",
    methods=["GET", "HEAD", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    include_in_schema=False,
)
async def dispatch(
    request: Request,
    service: WikiService = Depends(get_wiki_service),
) -> Response:
    """
    Classify the request and run the matching handler.

    Error responses (handled by global exception handlers):
        HTTP 404: no route matches, or the web/page/attachment/version is absent
        HTTP 400: bad body, name mismatch, invalid filename, create on existing
        HTTP 500: storage or serialization failure
    """
    method = request.method
    path = request.url.path
    route = path_router.classify(method, path)
    if route.kind is RouteKind.INVALID:
        raise NotFoundError(resource="route", resource_id=f"{method} {path}")

    body = b""
    if method in BODY_METHODS:
        # Reject before reading when the client announces an oversized body
        content_length = request.headers.get("content-length")
        max_size = service.max_body_size
        if content_length and content_length.isdigit() and int(content_length) > max_size:
            raise ValidationError(
                message=f"Request body exceeds maximum of {max_size} bytes",
                field="body",
                context={"reported_size": int(content_length), "max_size": max_size},
            )
        body = await request.body()

    logger.debug("Dispatching %s %s as %s", method, path, route.kind.value)
    return await HANDLERS[route.kind](service, route, body)
