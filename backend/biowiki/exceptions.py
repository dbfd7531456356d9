"""
Biowiki — Custom Exception Hierarchy
=====================================

What:  Application-specific exceptions for every failure the stores can report.
Why:   Each store operation fails with a specific kind of error so the HTTP
       boundary (and any other caller) can switch on it. A single generic
       "storage failed" bucket would make 404 vs 400 vs 500 impossible to tell.
How:   Every exception carries a message, a context dict and an `ErrorKind`.
       Global exception handlers (registered in main.py) map them to status codes.
Who:   Raised by stores and WikiService; caught by the handlers in main.py.

Exception Hierarchy:
    BiowikiError (base)
    ├── NotFoundError          → 404 Not Found
    ├── NotDirectoryError      → 500 (a page path points at a regular file)
    ├── InvalidPathError       → 400 (name cannot be used as a path component)
    ├── Utf8Error              → 500 (directory name is not valid UTF-8)
    ├── NameMismatchError      → 400
    ├── OverwriteError         → 400 (create on an existing web/page)
    ├── StorageIOError         → 500
    ├── SerializationError     → 500 (stored JSON unreadable / unwritable)
    ├── DecodeError            → 400 (malformed base64 payload)
    └── ValidationError        → 400 (client input rejected before any write)
"""

import enum
from typing import Any, Dict, Optional


class ErrorKind(str, enum.Enum):
    """Tag carried by every BiowikiError; stable across message wording changes."""

    NOT_FOUND = "not_found"
    NOT_DIRECTORY = "not_directory"
    INVALID_PATH = "invalid_path"
    UTF8 = "utf8_error"
    NAME_MISMATCH = "name_mismatch"
    OVERWRITE = "overwrite_error"
    IO = "io_error"
    SERIALIZATION = "serialization_error"
    DECODE = "decode_error"
    VALIDATION = "validation_error"


class BiowikiError(Exception):
    """
    Base exception for all Biowiki errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only for client errors)
        kind:     ErrorKind of the concrete class
    """

    kind: ErrorKind = ErrorKind.IO
    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class NotFoundError(BiowikiError):
    """
    Raised when a web, page, version or attachment does not exist.

    The filesystem reports absence as FileNotFoundError or as a failed
    exists() check; both become this exception so the handler can answer 404.
    """

    kind = ErrorKind.NOT_FOUND
    status_code = 404

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class NotDirectoryError(BiowikiError):
    """A page path exists but is not a directory."""

    kind = ErrorKind.NOT_DIRECTORY

    def __init__(self, path: str, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["path"] = path
        super().__init__(message="Page path is not a directory", context=ctx)


class InvalidPathError(BiowikiError):
    """
    A name cannot be used as a single path component.

    Covers paths without a final component (e.g. the filesystem root) and
    names like '..' or 'a/b' that would escape or nest the store layout.
    """

    kind = ErrorKind.INVALID_PATH
    status_code = 400

    def __init__(self, name: str, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["name"] = name
        super().__init__(message=f"'{name}' is not a valid name", context=ctx)


class Utf8Error(BiowikiError):
    """A directory name on disk does not decode as UTF-8."""

    kind = ErrorKind.UTF8

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Page name is not a valid UTF-8 string", context=context)


class NameMismatchError(BiowikiError):
    """
    A page's stored name differs from the name it is addressed by.

    Raised on open when page.json's name differs from the page directory
    (the directory was renamed out from under its content), and by the
    service when an update body names a different page than the URL.
    """

    kind = ErrorKind.NAME_MISMATCH
    status_code = 400

    def __init__(self, expected: str, actual: str, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx.update({"expected": expected, "actual": actual})
        super().__init__(
            message=f"Page name '{actual}' does not match '{expected}'",
            context=ctx,
        )
        self.expected = expected
        self.actual = actual


class OverwriteError(BiowikiError):
    """Create was called for a web or page whose directory already exists."""

    kind = ErrorKind.OVERWRITE
    status_code = 400

    def __init__(self, resource: str, name: str, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx.update({"resource": resource, "name": name})
        super().__init__(message=f"{resource} '{name}' already exists", context=ctx)


class StorageIOError(BiowikiError):
    """
    Raised when a filesystem operation fails for a reason other than absence.

    Recovery:
        None in the store. The error is logged with the OS error and the
        client receives a generic 500; paths are never returned.
    """

    kind = ErrorKind.IO

    def __init__(
        self,
        message: str = "Storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class SerializationError(BiowikiError):
    """Stored JSON could not be parsed (or a detail could not be serialized)."""

    kind = ErrorKind.SERIALIZATION

    def __init__(
        self,
        message: str = "Stored data could not be read",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DecodeError(BiowikiError):
    """An uploaded attachment payload is not valid base64."""

    kind = ErrorKind.DECODE
    status_code = 400

    def __init__(
        self,
        message: str = "Attachment data is not valid base64",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ValidationError(BiowikiError):
    """
    Raised when client input fails validation.

    What:    The client sent something it can correct: malformed JSON, a body
             that does not match the schema, an invalid attachment filename,
             a body over the size limit.
    HTTP:    400 Bad Request
    """

    kind = ErrorKind.VALIDATION
    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field
