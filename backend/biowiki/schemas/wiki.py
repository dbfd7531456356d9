"""
Biowiki — Pydantic Wire Schemas
================================

What:  Pydantic models for everything that crosses the HTTP boundary or is
       persisted as JSON (page.json and version snapshots).
Why:   One definition drives request validation, response serialization and
       the exact bytes that are hashed into version keys.
Who:   Stores persist PageDetail; WikiService parses request bodies into
       WebCreate/PageDetail/AttachmentUpload and returns the stub models.

Design Decision:
    PageDetail doubles as the on-disk format. Serialization goes through
    `page_detail_bytes()` only, so page.json and versions/<hash>.json always
    hold identical bytes for the same content and the hash is reproducible.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

# Characters that would make a name escape or nest the directory layout
_FORBIDDEN_NAME_CHARS = ("/", "\\", "\x00")


def is_valid_name(name: str) -> bool:
    """True when `name` can be used as exactly one path component."""
    if not name or name in (".", ".."):
        return False
    return not any(ch in name for ch in _FORBIDDEN_NAME_CHARS)


def _check_name(v: str) -> str:
    if not is_valid_name(v):
        raise ValueError(f"'{v}' is not a valid name")
    return v


# ══════════════════════════════════════════════════════════════════════════
# Persisted / versionable content
# ══════════════════════════════════════════════════════════════════════════


class PageDetail(BaseModel):
    """
    What:  The versionable unit of a page: name, title, text content, parent.
    Who:   Body of POST /webs/:w/pages and PUT /webs/:w/pages/:p,
           response of GET .../pages/:p and GET .../versions/:h.

    Field order is part of the on-disk format: it fixes the serialized bytes
    and therefore the version hash.
    """

    name: str = Field(description="Page name; equals the page directory name")
    title: str = Field(description="Human-readable title")
    content: str = Field(description="Page text")
    parent: str = Field(default="", description="Name of the parent page, empty for top level")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _check_name(v)


def page_detail_bytes(detail: PageDetail) -> bytes:
    """Serialized form written to page.json and hashed into the version key."""
    return detail.model_dump_json(indent=2).encode("utf-8")


# ══════════════════════════════════════════════════════════════════════════
# Request bodies
# ══════════════════════════════════════════════════════════════════════════


class WebCreate(BaseModel):
    """Body of POST /webs."""

    name: str = Field(description="Name of the new web")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _check_name(v)


class AttachmentUpload(BaseModel):
    """
    What:  Body of POST .../attachments.
    How:   `encoded_data` is standard base64; it is decoded by the
           AttachmentStore, not here, so a bad payload surfaces as DecodeError.

    The filename is NOT validated by this model. WikiService checks it with
    the strict upload validator before anything touches the filesystem.
    """

    file_name: str = Field(description="Attachment filename, <name>.<extension>")
    encoded_data: str = Field(description="Base64-encoded file content")


# ══════════════════════════════════════════════════════════════════════════
# Listing stubs
# ══════════════════════════════════════════════════════════════════════════


class WebStub(BaseModel):
    name: str


class PageStub(BaseModel):
    name: str


class AttachmentStub(BaseModel):
    file_name: str


class VersionStub(BaseModel):
    hash: str = Field(description="SHA-256 hex digest of the snapshot bytes")


# ══════════════════════════════════════════════════════════════════════════
# Error / health responses
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Example:
        {
            "error": "name_mismatch",
            "message": "Page name 'Other' does not match 'WebHome'",
            "details": {"expected": "WebHome", "actual": "Other"},
            "request_id": "1f2e3d4c"
        }
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health for monitoring probes."""

    status: str = Field(description="healthy or unhealthy")
    version: str = Field(description="Application version")
    storage: str = Field(description="Storage root state: writable, readonly, missing")
    uptime_seconds: float = Field(description="Seconds since service started")
