"""CORS configuration and request validation."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from webguard.all_or_some import AllOrSome
from webguard.cors_errors import CorsError, CorsErrorKind
from webguard.messages import Headers, Request, _header_name, _is_token, _is_visible_ascii

OriginFn = Callable[[str, Request], bool]

_ORIGIN = "origin"
_VARY = "vary"
_REQUEST_METHOD = "access-control-request-method"
_REQUEST_HEADERS = "access-control-request-headers"
_VARY_VALUE = "Origin, Access-Control-Request-Method, Access-Control-Request-Headers"


def header_value_to_method(value: str) -> str | None:
    """Parse a header value as an HTTP method, or return None if it is not one."""
    if not _is_visible_ascii(value) or not _is_token(value):
        return None
    return value


def intersperse_header_values(values: Iterable[str]) -> str:
    """Join a non-empty collection of header values with ", ", in sorted order."""
    items = sorted(values)
    if not items:
        raise ValueError("cannot build a header value from an empty collection")
    return ", ".join(items)


def add_vary_header(headers: Headers) -> None:
    """Add the CORS request headers to the response's Vary header."""
    existing = headers.get(_VARY)
    value = _VARY_VALUE if existing is None else f"{existing}, {_VARY_VALUE}"
    headers.insert(_VARY, value)


def _some_set() -> AllOrSome[set[str]]:
    return AllOrSome.some(set())


@dataclass
class CorsConfig:
    """Settings used to validate CORS requests and build responses.

    The defaults are restrictive: no origins, methods or headers are allowed.
    """

    allowed_origins: AllOrSome[set[str]] = field(default_factory=_some_set)
    allowed_origins_fns: list[OriginFn] = field(default_factory=list)
    allowed_methods: set[str] = field(default_factory=set)
    allowed_methods_baked: str | None = None
    allowed_headers: AllOrSome[set[str]] = field(default_factory=_some_set)
    allowed_headers_baked: str | None = None
    expose_headers: AllOrSome[set[str]] = field(default_factory=_some_set)
    expose_headers_baked: str | None = None
    max_age: int | None = None
    preflight: bool = True
    send_wildcard: bool = False
    supports_credentials: bool = False
    vary_header: bool = True
    block_on_origin_mismatch: bool = True

    def validate_origin(self, request: Request) -> bool:
        """Check the request's Origin.

        Returns whether the Access-Control-Allow-Origin header should be added;
        raises CorsError when the request must be rejected.
        """
        if self.allowed_origins.is_all():
            if not self.allowed_origins_fns:
                return True
            allowed: set[str] = set()
        else:
            allowed = self.allowed_origins.as_ref() or set()

        origin = request.headers.get(_ORIGIN)
        if origin is None:
            raise CorsError(CorsErrorKind.MISSING_ORIGIN)
        if origin in allowed or self.validate_origin_fns(origin, request):
            return True
        if self.block_on_origin_mismatch:
            raise CorsError(CorsErrorKind.ORIGIN_NOT_ALLOWED)
        return False

    def validate_origin_fns(self, origin: str, request: Request) -> bool:
        """Accept the origin if any of the origin functions returns true."""
        return any(origin_fn(origin, request) for origin_fn in self.allowed_origins_fns)

    def access_control_allow_origin(self, request: Request) -> str | None:
        """The Access-Control-Allow-Origin value for an already validated request."""
        if self.allowed_origins.is_all() and self.send_wildcard:
            return "*"
        return request.headers.get(_ORIGIN)

    def validate_allowed_method(self, request: Request) -> None:
        """Check the method named in Access-Control-Request-Method."""
        value = request.headers.get(_REQUEST_METHOD)
        if value is None:
            raise CorsError(CorsErrorKind.MISSING_REQUEST_METHOD)
        method = header_value_to_method(value)
        if method is None:
            raise CorsError(CorsErrorKind.BAD_REQUEST_METHOD)
        if method not in self.allowed_methods:
            raise CorsError(CorsErrorKind.METHOD_NOT_ALLOWED)

    def validate_allowed_headers(self, request: Request) -> None:
        """Check the header names listed in Access-Control-Request-Headers."""
        if self.allowed_headers.is_all():
            return
        allowed = self.allowed_headers.as_ref() or set()

        value = request.headers.get(_REQUEST_HEADERS)
        if value is None:
            return
        if not _is_visible_ascii(value):
            raise CorsError(CorsErrorKind.BAD_REQUEST_HEADERS)

        try:
            requested = {_header_name(name.strip()) for name in value.split(",")}
        except ValueError:
            raise CorsError(CorsErrorKind.BAD_REQUEST_HEADERS) from None

        if not requested:
            raise CorsError(CorsErrorKind.BAD_REQUEST_HEADERS)
        if not requested <= allowed:
            raise CorsError(CorsErrorKind.HEADERS_NOT_ALLOWED)