"""Errors raised while processing CORS guarded requests."""

from __future__ import annotations

from enum import Enum
from http import HTTPStatus

from webguard.messages import Response


class CorsErrorKind(Enum):
    """The ways a CORS check can fail, with their messages."""

    WILDCARD_ORIGIN = "`allowed_origin` argument must not be wildcard (`*`)"
    MISSING_ORIGIN = "Request header `Origin` is required but was not provided"
    MISSING_REQUEST_METHOD = (
        "Request header `Access-Control-Request-Method` is required but is missing"
    )
    BAD_REQUEST_METHOD = "Request header `Access-Control-Request-Method` has an invalid value"
    BAD_REQUEST_HEADERS = "Request header `Access-Control-Request-Headers` has an invalid value"
    ORIGIN_NOT_ALLOWED = "Origin is not allowed to make this request"
    METHOD_NOT_ALLOWED = "Requested method is not allowed"
    HEADERS_NOT_ALLOWED = "One or more request headers are not allowed"


class CorsError(Exception):
    """A CORS check failed for a request."""

    def __init__(self, kind: CorsErrorKind):
        super().__init__(kind.value)
        self.kind = kind

    def status_code(self) -> HTTPStatus:
        """CORS failures are always reported as 400 Bad Request."""
        return HTTPStatus.BAD_REQUEST

    def error_response(self) -> Response:
        """A response carrying the status code and the error message."""
        return Response(status=self.status_code(), body=str(self))


class CorsConfigError(ValueError):
    """The CORS configuration is invalid and the middleware cannot be built."""