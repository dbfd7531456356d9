"""
Biowiki — Declarative Path Router
==================================

What:  Turns an inbound (method, path) into a typed Route with its path
       parameters, or Route(INVALID).
Why:   Every wiki URL is described once, declaratively ("/webs/:web_name/pages"),
       and the same compiled expression yields both the route classification
       and the parameter values.
How:   Patterns are compiled once at import into anchored regular expressions;
       classify() walks a fixed, ordered rule table and returns the first match.
Who:   Called by the catch-all wiki route for every request.

Pattern syntax:
    /webs/:web_name/pages/:page_name
     ^^^^  ^^^^^^^^^
     literal   parameter (matches one non-empty path component)
"""

import enum
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple


class PathPattern:
    """
    A compiled path pattern.

    The expression is anchored at both ends, so a path with a different
    number of segments never matches. Parameters are captured positionally
    and zipped with their declared names.
    """

    def __init__(self, pattern: str):
        self.pattern = pattern
        self.names: List[str] = []
        expr = ["^"]
        # Leading "" before the first "/" is skipped
        for part in pattern.split("/")[1:]:
            expr.append("/")
            if part.startswith(":"):
                self.names.append(part[1:])
                expr.append("([^/]+)")
            else:
                expr.append(re.escape(part))
        expr.append("$")
        self.regex = re.compile("".join(expr))

    def match(self, path: str) -> Optional[Dict[str, str]]:
        """
        Match a concrete path.

        Returns a mapping with one entry per declared parameter, or None.
        A pattern that declares the same name twice can never produce a full
        mapping and therefore never matches.
        """
        m = self.regex.fullmatch(path)
        if m is None:
            return None
        params = dict(zip(self.names, m.groups()))
        if len(params) != len(self.names):
            return None
        return params

    def __repr__(self) -> str:
        return f"PathPattern({self.pattern!r})"


class RouteKind(str, enum.Enum):
    LIST_WEBS = "list_webs"
    CREATE_WEB = "create_web"
    LIST_PAGES = "list_pages"
    CREATE_PAGE = "create_page"
    SHOW_PAGE = "show_page"
    UPDATE_PAGE = "update_page"
    LIST_ATTACHMENTS = "list_attachments"
    CREATE_ATTACHMENT = "create_attachment"
    SERVE_ATTACHMENT = "serve_attachment"
    LIST_PAGE_VERSIONS = "list_page_versions"
    SHOW_PAGE_VERSION = "show_page_version"
    INVALID = "invalid"


@dataclass(frozen=True)
class Route:
    """A classified request. Parameters not used by `kind` stay None."""

    kind: RouteKind
    web_name: Optional[str] = None
    page_name: Optional[str] = None
    attachment_name: Optional[str] = None
    version_hash: Optional[str] = None


INVALID_ROUTE = Route(RouteKind.INVALID)

WEBS_PATH = PathPattern("/webs")
PAGES_PATH = PathPattern("/webs/:web_name/pages")
PAGE_PATH = PathPattern("/webs/:web_name/pages/:page_name")
ATTACHMENTS_PATH = PathPattern("/webs/:web_name/pages/:page_name/attachments")
ATTACHMENT_PATH = PathPattern("/webs/:web_name/pages/:page_name/attachments/:attachment_name")
VERSIONS_PATH = PathPattern("/webs/:web_name/pages/:page_name/versions")
VERSION_PATH = PathPattern("/webs/:web_name/pages/:page_name/versions/:version_hash")

# Priority order: deeper shapes first within each resource
DEFAULT_RULES: Tuple[Tuple[str, PathPattern, RouteKind], ...] = (
    ("GET", ATTACHMENT_PATH, RouteKind.SERVE_ATTACHMENT),
    ("GET", ATTACHMENTS_PATH, RouteKind.LIST_ATTACHMENTS),
    ("GET", VERSION_PATH, RouteKind.SHOW_PAGE_VERSION),
    ("GET", VERSIONS_PATH, RouteKind.LIST_PAGE_VERSIONS),
    ("GET", PAGE_PATH, RouteKind.SHOW_PAGE),
    ("GET", PAGES_PATH, RouteKind.LIST_PAGES),
    ("GET", WEBS_PATH, RouteKind.LIST_WEBS),
    ("POST", ATTACHMENTS_PATH, RouteKind.CREATE_ATTACHMENT),
    ("POST", PAGES_PATH, RouteKind.CREATE_PAGE),
    ("POST", WEBS_PATH, RouteKind.CREATE_WEB),
    ("PUT", PAGE_PATH, RouteKind.UPDATE_PAGE),
)


class PathRouter:
    """
    Ordered (method, pattern, kind) rules, compiled once and shared.

    classify() has no side effects and keeps no per-request state, so one
    instance serves all concurrent requests.
    """

    def __init__(self, rules: Tuple[Tuple[str, PathPattern, RouteKind], ...] = DEFAULT_RULES):
        self.rules = tuple((method.upper(), pattern, kind) for method, pattern, kind in rules)

    def classify(self, method: str, path: str) -> Route:
        method = method.upper()
        for rule_method, pattern, kind in self.rules:
            if rule_method != method:
                continue
            params = pattern.match(path)
            if params is not None:
                return Route(kind, **params)
        return INVALID_ROUTE


path_router = PathRouter()
