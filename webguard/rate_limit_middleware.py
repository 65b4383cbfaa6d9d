"""Middleware that rejects requests over the rate limit."""

from __future__ import annotations

import logging
from collections.abc import Callable
from http import HTTPStatus

from webguard.limit_status import ClientError, LimitationError, LimitExceeded
from webguard.limiter import Limiter
from webguard.messages import Request, Response

logger = logging.getLogger(__name__)

Service = Callable[[Request], Response]

_MISSING_LIMITER = "Limiter should be set in request extensions for RateLimiter middleware"


class RateLimiter:
    """Factory for rate limit middleware.

    Without a limiter of its own, the middleware looks one up in each
    request's extensions under the ``Limiter`` class.
    """

    def __init__(self, limiter: Limiter | None = None):
        self.limiter = limiter

    def new_transform(self, service: Service) -> RateLimiterMiddleware:
        """Wrap ``service`` with rate limiting."""
        return RateLimiterMiddleware(service, self.limiter)


class RateLimiterMiddleware:
    """Counts each keyed request and answers 429 once the limit is exceeded."""

    def __init__(self, service: Service, limiter: Limiter | None = None):
        self.service = service
        self.limiter = limiter

    def _limiter_for(self, request: Request) -> Limiter:
        limiter = self.limiter if self.limiter is not None else request.extensions.get(Limiter)
        if limiter is None:
            raise RuntimeError(_MISSING_LIMITER)
        return limiter

    def __call__(self, request: Request) -> Response:
        limiter = self._limiter_for(request)
        key = limiter.get_key_fn(request)
        if key is None:
            return self.service(request)

        try:
            limiter.count(str(key))
        except LimitExceeded:
            logger.warning("Rate limit exceed error for %s", key)
            return Response(status=HTTPStatus.TOO_MANY_REQUESTS)
        except ClientError as err:
            logger.error("Client request failed, redis error: %s", err.source)
            return Response(status=HTTPStatus.INTERNAL_SERVER_ERROR)
        except LimitationError as err:
            logger.error("Count failed: %s", err)
            return Response(status=HTTPStatus.INTERNAL_SERVER_ERROR)

        return self.service(request)