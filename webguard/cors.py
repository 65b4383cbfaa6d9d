"""Builder for the CORS middleware."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable
from typing import Callable

from webguard.all_or_some import AllOrSome
from webguard.cors_errors import CorsConfigError, CorsError, CorsErrorKind
from webguard.cors_inner import (
    CorsConfig,
    OriginFn,
    header_value_to_method,
    intersperse_header_values,
)
from webguard.cors_middleware import CorsMiddleware
from webguard.messages import Request, Response, _header_name

logger = logging.getLogger(__name__)

Service = Callable[[Request], Response]

ALL_METHODS: frozenset[str] = frozenset(
    {"GET", "POST", "PUT", "DELETE", "HEAD", "OPTIONS", "CONNECT", "PATCH", "TRACE"}
)

_URI_FORBIDDEN = frozenset('"<>\\^`{|}')


def _is_valid_uri(text: str) -> bool:
    """A conservative check that ``text`` can be parsed as a URI."""
    return (
        isinstance(text, str)
        and bool(text)
        and all("!" <= char <= "~" and char not in _URI_FORBIDDEN for char in text)
    )


def _copy_set_choice(value: AllOrSome[set[str]]) -> AllOrSome[set[str]]:
    if value.is_all():
        return AllOrSome.all()
    return AllOrSome.some(set(value.as_ref() or ()))


class Cors:
    """Fluent builder for CORS middleware.

    ``Cors()`` starts from restrictive defaults: no allowed origins, methods,
    request headers or exposed headers, no credentials and no max age.
    Configuration errors are remembered and reported by ``new_transform``;
    once an error is recorded, later settings are ignored.
    """

    def __init__(self) -> None:
        self._config = CorsConfig()
        self._error: Exception | None = None

    @classmethod
    def permissive(cls) -> Cors:
        """A wide-open configuration meant for development only.

        All origins, methods, request headers and exposed headers are allowed,
        credentials are supported, max age is one hour and no wildcard is sent.
        """
        cors = cls()
        cors._config = CorsConfig(
            allowed_origins=AllOrSome.all(),
            allowed_methods=set(ALL_METHODS),
            allowed_headers=AllOrSome.all(),
            expose_headers=AllOrSome.all(),
            max_age=3600,
            supports_credentials=True,
        )
        return cors

    def _settable(self) -> CorsConfig | None:
        return None if self._error is not None else self._config

    def allow_any_origin(self) -> Cors:
        """Accept requests from any origin."""
        config = self._settable()
        if config is not None:
            config.allowed_origins = AllOrSome.all()
        return self

    def allowed_origin(self, origin: str) -> Cors:
        """Add an origin that may make requests; matching is case-sensitive.

        A wildcard or a value that is not a valid URI is a configuration error.
        """
        config = self._settable()
        if config is None:
            return self
        if not _is_valid_uri(origin):
            self._error = ValueError(f"invalid origin URI: {origin!r}")
        elif origin == "*":
            logger.error("Wildcard in `allowed_origin` is not allowed. Use `send_wildcard`.")
            self._error = CorsError(CorsErrorKind.WILDCARD_ORIGIN)
        else:
            if config.allowed_origins.is_all():
                config.allowed_origins = AllOrSome.some(set())
            origins = config.allowed_origins.as_ref()
            if origins is not None:
                origins.add(origin)
        return self

    def allowed_origin_fn(self, f: OriginFn) -> Cors:
        """Add a predicate consulted for origins not in the allowed list.

        It receives the Origin header value and the request.
        """
        config = self._settable()
        if config is not None:
            config.allowed_origins_fns.append(f)
        return self

    def allow_any_method(self) -> Cors:
        """Allow all standard HTTP methods."""
        config = self._settable()
        if config is not None:
            config.allowed_methods = set(ALL_METHODS)
        return self

    def allowed_methods(self, methods: Iterable[str]) -> Cors:
        """Add methods that allowed origins may use."""
        config = self._settable()
        if config is None:
            return self
        for method in methods:
            if not isinstance(method, str) or header_value_to_method(method) is None:
                self._error = ValueError(f"invalid HTTP method: {method!r}")
                break
            config.allowed_methods.add(method)
        return self

    def allow_any_header(self) -> Cors:
        """Accept any request header."""
        config = self._settable()
        if config is not None:
            config.allowed_headers = AllOrSome.all()
        return self

    def _add_allowed_header(self, config: CorsConfig, header: str) -> bool:
        try:
            name = _header_name(header)
        except ValueError as err:
            self._error = err
            return False
        if config.allowed_headers.is_all():
            config.allowed_headers = AllOrSome.some(set())
        headers = config.allowed_headers.as_ref()
        if headers is not None:
            headers.add(name)
        return True

    def allowed_header(self, header: str) -> Cors:
        """Add one allowed request header."""
        config = self._settable()
        if config is not None:
            self._add_allowed_header(config, header)
        return self

    def allowed_headers(self, headers: Iterable[str]) -> Cors:
        """Add request header names that allowed origins may send."""
        config = self._settable()
        if config is None:
            return self
        for header in headers:
            if not self._add_allowed_header(config, header):
                break
        return self

    def expose_any_header(self) -> Cors:
        """Expose every response header."""
        config = self._settable()
        if config is not None:
            config.expose_headers = AllOrSome.all()
        return self

    def expose_headers(self, headers: Iterable[str]) -> Cors:
        """Add response headers that are safe to expose to the client."""
        for header in headers:
            try:
                name = _header_name(header)
            except ValueError as err:
                self._error = err
                break
            config = self._settable()
            if config is not None:
                if config.expose_headers.is_all():
                    config.expose_headers = AllOrSome.some(set())
                exposed = config.expose_headers.as_ref()
                if exposed is not None:
                    exposed.add(name)
        return self

    def max_age(self, max_age: int | None) -> Cors:
        """Set the preflight cache time in seconds, or None to omit it."""
        config = self._settable()
        if config is None:
            return self
        if max_age is not None and (not isinstance(max_age, int) or max_age < 0):
            self._error = ValueError(f"invalid max age: {max_age!r}")
        else:
            config.max_age = max_age
        return self

    def send_wildcard(self) -> Cors:
        """Send ``*`` as the allowed origin when all origins are allowed."""
        config = self._settable()
        if config is not None:
            config.send_wildcard = True
        return self

    def supports_credentials(self) -> Cors:
        """Send Access-Control-Allow-Credentials: true."""
        config = self._settable()
        if config is not None:
            config.supports_credentials = True
        return self

    def disable_vary_header(self) -> Cors:
        """Stop adding the CORS request headers to Vary."""
        config = self._settable()
        if config is not None:
            config.vary_header = False
        return self

    def disable_preflight(self) -> Cors:
        """Stop answering preflight OPTIONS requests automatically."""
        config = self._settable()
        if config is not None:
            config.preflight = False
        return self

    def block_on_origin_mismatch(self, block: bool) -> Cors:
        """Whether a request with a disallowed origin is rejected with 400."""
        config = self._settable()
        if config is not None:
            config.block_on_origin_mismatch = block
        return self

    def new_transform(self, service: Service) -> CorsMiddleware:
        """Wrap ``service`` with the configured middleware.

        Raises CorsConfigError if the configuration is invalid.
        """
        if self._error is not None:
            logger.error("%s", self._error)
            raise CorsConfigError(str(self._error)) from self._error

        source = self._config
        if source.supports_credentials and source.send_wildcard and source.allowed_origins.is_all():
            message = (
                "Illegal combination of CORS options: credentials can not be supported when "
                "all origins are allowed and `send_wildcard` is enabled."
            )
            logger.error(message)
            raise CorsConfigError(message)

        config = dataclasses.replace(
            source,
            allowed_origins=_copy_set_choice(source.allowed_origins),
            allowed_origins_fns=list(source.allowed_origins_fns),
            allowed_methods=set(source.allowed_methods),
            allowed_headers=_copy_set_choice(source.allowed_headers),
            expose_headers=_copy_set_choice(source.expose_headers),
        )

        allowed_headers = config.allowed_headers.as_ref()
        if allowed_headers:
            config.allowed_headers_baked = intersperse_header_values(allowed_headers)
        if config.allowed_methods:
            config.allowed_methods_baked = intersperse_header_values(config.allowed_methods)
        exposed = config.expose_headers.as_ref()
        if exposed:
            config.expose_headers_baked = intersperse_header_values(exposed)

        return CorsMiddleware(service, config)