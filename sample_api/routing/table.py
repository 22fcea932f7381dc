"""
Sample API - Route Table / Dispatch
====================================

What:  Maps (method, path) to an ordered middleware chain and runs it.
Why:   Routes are declared once at startup in one readable table
       (routes/samples.py) instead of being scattered over decorators.
How:   Path patterns are compiled when registered into literal segments and
       named capture slots, then indexed by (method, segment count).

Matching rules:
    - Exact segment count; no prefix matching.
    - A literal segment matches by equality; a ':name' segment captures any
      non-empty segment.
    - One trailing slash on the request path is ignored: '/samples/' is
      '/samples'. The resource root ('') and '/:sampleId' never collide
      because their segment counts differ.
    - When several shapes match, the one with a literal at the earliest
      differing position wins ('/samples/export' beats '/samples/:sampleId').

Lifecycle:
    Built and frozen at startup. After freeze() the table is read-only and
    may be matched concurrently by any number of requests without locks.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type

from pydantic import BaseModel

from sample_api.exceptions import NotFoundError, RouteConflictError
from sample_api.routing.chain import execute, middleware_name
from sample_api.routing.context import Middleware, RequestContext
from sample_api.schemas.envelope import Envelope, from_error

logger = logging.getLogger(__name__)

SUPPORTED_METHODS = ("POST", "GET", "PUT", "DELETE")


@dataclass(frozen=True)
class Segment:
    value: str
    is_param: bool = False


@dataclass(frozen=True)
class PathPattern:
    """A compiled path pattern such as '/samples/:sampleId/secureAction'."""
    raw: str
    segments: Tuple[Segment, ...]

    @classmethod
    def compile(cls, pattern: str) -> "PathPattern":
        normalized = "/" + pattern.strip("/") if pattern.strip("/") else ""
        segments = []
        names = set()
        for part in normalized.split("/")[1:]:
            if not part:
                raise ValueError(f"Empty segment in path pattern {pattern!r}")
            if part.startswith(":"):
                name = part[1:]
                if not name.isidentifier():
                    raise ValueError(f"Invalid parameter name {part!r} in {pattern!r}")
                if name in names:
                    raise ValueError(f"Duplicate parameter {part!r} in {pattern!r}")
                names.add(name)
                segments.append(Segment(name, is_param=True))
            else:
                segments.append(Segment(part))
        return cls(raw=normalized, segments=tuple(segments))

    @property
    def shape(self) -> Tuple[Optional[str], ...]:
        """Literal values with every parameter collapsed to None."""
        return tuple(None if s.is_param else s.value for s in self.segments)

    @property
    def param_names(self) -> List[str]:
        return [s.value for s in self.segments if s.is_param]

    @property
    def specificity(self) -> Tuple[int, ...]:
        # Lower sorts first: literal (0) before parameter (1), position by position
        return tuple(1 if s.is_param else 0 for s in self.segments)

    def match(self, parts: Sequence[str]) -> Optional[Dict[str, str]]:
        if len(parts) != len(self.segments):
            return None
        params: Dict[str, str] = {}
        for segment, part in zip(self.segments, parts):
            if segment.is_param:
                if not part:
                    return None
                params[segment.value] = part
            elif segment.value != part:
                return None
        return params

    def with_prefix(self, prefix: "PathPattern") -> "PathPattern":
        return PathPattern(raw=prefix.raw + self.raw, segments=prefix.segments + self.segments)

    def openapi_path(self) -> str:
        parts = ["{%s}" % s.value if s.is_param else s.value for s in self.segments]
        return "/" + "/".join(parts)


@dataclass(frozen=True)
class RouteDoc:
    """Documentation attached to a route; read only by the OpenAPI generator."""
    summary: str = ""
    description: str = ""
    request_model: Optional[Type[BaseModel]] = None
    path_model: Optional[Type[BaseModel]] = None
    query_model: Optional[Type[BaseModel]] = None
    result_model: Optional[Type[BaseModel]] = None
    result_description: str = ""
    secured: bool = False
    tags: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Route:
    method: str
    pattern: PathPattern
    chain: Tuple[Middleware, ...]
    doc: RouteDoc = field(default_factory=RouteDoc)

    def __str__(self) -> str:
        return f"{self.method} {self.pattern.raw or '/'}"


def split_path(path: str) -> List[str]:
    """'/samples/abc/' → ['samples', 'abc']; inner empty segments are kept."""
    if len(path) > 1 and path.endswith("/"):
        path = path[:-1]
    if path in ("", "/"):
        return []
    if path.startswith("/"):
        path = path[1:]
    return path.split("/")


class RouteTable:
    """
    Ordered collection of routes under an optional prefix.

    Usage:
        router = RouteTable(prefix="/samples", tag="Samples")
        router.post("", sample_validator.create, sample_controller.create)
        router.get("/:sampleId", sample_validator.details, sample_controller.details)

        api = RouteTable()
        api.include(router)
        api.freeze()
        envelope = await api.dispatch(ctx)
    """

    def __init__(
        self,
        prefix: str = "",
        tag: Optional[str] = None,
        tag_description: str = "",
        poll_interval: float = 0.25,
    ):
        self.prefix = PathPattern.compile(prefix)
        self.tag = tag
        self.tag_description = tag_description
        self.poll_interval = poll_interval
        self._routes: List[Route] = []
        self._index: Dict[Tuple[str, int], List[Route]] = {}
        self._tags: Dict[str, str] = {tag: tag_description} if tag else {}
        self._frozen = False

    # ── Registration (startup only) ───────────────────────────────────────

    def register(
        self,
        method: str,
        pattern: str,
        *chain: Middleware,
        doc: Optional[RouteDoc] = None,
    ) -> Route:
        """
        Add one route.

        Raises:
            RuntimeError:       the table is frozen
            ValueError:         unsupported method, empty chain, bad pattern
            RouteConflictError: same method and pattern shape already registered
        """
        method = method.upper().strip()
        if method not in SUPPORTED_METHODS:
            raise ValueError(f"Unsupported method {method!r}; expected one of {SUPPORTED_METHODS}")
        if not chain:
            raise ValueError(f"Route {method} {pattern!r} needs at least one middleware")
        doc = doc or RouteDoc()
        if self.tag and not doc.tags:
            doc = replace(doc, tags=(self.tag,))
        compiled = PathPattern.compile(pattern).with_prefix(self.prefix)
        return self._add(Route(method=method, pattern=compiled, chain=tuple(chain), doc=doc))

    def get(self, pattern: str, *chain: Middleware, doc: Optional[RouteDoc] = None) -> Route:
        return self.register("GET", pattern, *chain, doc=doc)

    def post(self, pattern: str, *chain: Middleware, doc: Optional[RouteDoc] = None) -> Route:
        return self.register("POST", pattern, *chain, doc=doc)

    def put(self, pattern: str, *chain: Middleware, doc: Optional[RouteDoc] = None) -> Route:
        return self.register("PUT", pattern, *chain, doc=doc)

    def delete(self, pattern: str, *chain: Middleware, doc: Optional[RouteDoc] = None) -> Route:
        return self.register("DELETE", pattern, *chain, doc=doc)

    def include(self, other: "RouteTable") -> None:
        """Copy every route of `other` into this table under this table's prefix."""
        for route in other.routes:
            self._add(Route(
                method=route.method,
                pattern=route.pattern.with_prefix(self.prefix),
                chain=route.chain,
                doc=route.doc,
            ))
        self._tags.update(other.tags)

    def _add(self, route: Route) -> Route:
        if self._frozen:
            raise RuntimeError(f"Cannot register {route}: route table is frozen")
        key = (route.method, len(route.pattern.segments))
        for existing in self._index.get(key, []):
            if existing.pattern.shape == route.pattern.shape:
                raise RouteConflictError(route.method, route.pattern.raw, existing.pattern.raw)
        self._routes.append(route)
        bucket = self._index.setdefault(key, [])
        bucket.append(route)
        bucket.sort(key=lambda r: r.pattern.specificity)
        logger.debug("Registered route %s (%d middleware)", route, len(route.chain))
        return route

    def freeze(self) -> "RouteTable":
        self._frozen = True
        return self

    # ── Introspection ─────────────────────────────────────────────────────

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def routes(self) -> Tuple[Route, ...]:
        return tuple(self._routes)

    @property
    def tags(self) -> Dict[str, str]:
        return dict(self._tags)

    def __len__(self) -> int:
        return len(self._routes)

    # ── Request Time ──────────────────────────────────────────────────────

    def match(self, method: str, path: str) -> Optional[Tuple[Route, Dict[str, str]]]:
        parts = split_path(path)
        for route in self._index.get((method.upper(), len(parts)), ()):
            params = route.pattern.match(parts)
            if params is not None:
                return route, params
        return None

    async def dispatch(self, ctx: RequestContext) -> Optional[Envelope]:
        """
        Find the route for ctx.method / ctx.path, bind its params, run its chain.

        Returns the envelope written into ctx, or None if the client went away.
        """
        found = self.match(ctx.method, ctx.path)
        if found is None:
            envelope = from_error(NotFoundError(
                resource="route",
                body={"method": ctx.method, "path": ctx.path},
            ))
            ctx.write(envelope)
            return envelope

        route, params = found
        ctx.params = params
        ctx.state["route"] = str(route)
        return await execute(route.chain, ctx, poll_interval=self.poll_interval)


def describe(table: RouteTable) -> List[Dict[str, Any]]:
    """Plain listing of the table, used in startup logs."""
    return [
        {
            "method": route.method,
            "path": route.pattern.raw or "/",
            "chain": [middleware_name(m) for m in route.chain],
        }
        for route in table.routes
    ]
