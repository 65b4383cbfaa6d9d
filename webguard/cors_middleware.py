"""Middleware that applies a CORS configuration to requests and responses."""

from __future__ import annotations

import logging
from collections.abc import Callable
from http import HTTPStatus

from webguard.cors_errors import CorsError, CorsErrorKind
from webguard.cors_inner import (
    CorsConfig,
    add_vary_header,
    header_value_to_method,
    intersperse_header_values,
)
from webguard.messages import Request, Response

logger = logging.getLogger(__name__)

Service = Callable[[Request], Response]

_ORIGIN = "origin"
_REQUEST_METHOD = "access-control-request-method"
_REQUEST_HEADERS = "access-control-request-headers"
_ALLOW_ORIGIN = "access-control-allow-origin"
_ALLOW_METHODS = "access-control-allow-methods"
_ALLOW_HEADERS = "access-control-allow-headers"
_ALLOW_CREDENTIALS = "access-control-allow-credentials"
_EXPOSE_HEADERS = "access-control-expose-headers"
_MAX_AGE = "access-control-max-age"


class CorsMiddleware:
    """Wraps a service, validating CORS requests and adding CORS response headers."""

    def __init__(self, service: Service, config: CorsConfig):
        self.service = service
        self.config = config

    @staticmethod
    def is_request_preflight(request: Request) -> bool:
        """Whether the request is OPTIONS with a valid Access-Control-Request-Method."""
        if request.method != "OPTIONS":
            return False
        value = request.headers.get(_REQUEST_METHOD)
        return value is not None and header_value_to_method(value) is not None

    def handle_preflight(self, request: Request) -> Response:
        """Validate a preflight request and build the response to it."""
        config = self.config
        try:
            if not config.validate_origin(request):
                raise CorsError(CorsErrorKind.ORIGIN_NOT_ALLOWED)
            config.validate_allowed_method(request)
            config.validate_allowed_headers(request)
        except CorsError as err:
            return err.error_response()

        response = Response(status=HTTPStatus.OK)
        headers = response.headers

        origin = config.access_control_allow_origin(request)
        if origin is not None:
            headers.insert(_ALLOW_ORIGIN, origin)

        if config.allowed_methods_baked is not None:
            headers.insert(_ALLOW_METHODS, config.allowed_methods_baked)

        if config.allowed_headers_baked is not None:
            headers.insert(_ALLOW_HEADERS, config.allowed_headers_baked)
        else:
            requested = request.headers.get(_REQUEST_HEADERS)
            if requested is not None:
                headers.insert(_ALLOW_HEADERS, requested)

        if config.supports_credentials:
            headers.insert(_ALLOW_CREDENTIALS, "true")

        if config.max_age is not None:
            headers.insert(_MAX_AGE, str(config.max_age))

        if config.vary_header:
            add_vary_header(headers)

        return response

    def augment_response(
        self, origin_allowed: bool, response: Response, request: Request
    ) -> Response:
        """Add CORS headers to a response produced by the wrapped service."""
        config = self.config
        headers = response.headers

        if origin_allowed:
            origin = config.access_control_allow_origin(request)
            if origin is not None:
                headers.insert(_ALLOW_ORIGIN, origin)

        if config.expose_headers_baked is not None:
            logger.debug("exposing selected headers: %s", config.expose_headers_baked)
            headers.insert(_EXPOSE_HEADERS, config.expose_headers_baked)
        elif config.expose_headers.is_all() and len(headers):
            exposed = intersperse_header_values(set(headers.names()))
            logger.debug("exposing all headers from response: %s", exposed)
            headers.insert(_EXPOSE_HEADERS, exposed)

        if config.supports_credentials:
            headers.insert(_ALLOW_CREDENTIALS, "true")

        if config.vary_header:
            add_vary_header(headers)

        return response

    def __call__(self, request: Request) -> Response:
        config = self.config

        if config.preflight and self.is_request_preflight(request):
            return self.handle_preflight(request)

        if request.headers.get(_ORIGIN) is None:
            origin_allowed = False
        else:
            try:
                origin_allowed = config.validate_origin(request)
            except CorsError as err:
                logger.debug("origin validation failed; inner service is not called")
                response = err.error_response()
                if config.vary_header:
                    add_vary_header(response.headers)
                return response

        response = self.service(request)
        return self.augment_response(origin_allowed, response, request)