"""Fixed-window rate limiter for arbitrary keys, backed by Redis."""

from __future__ import annotations

import warnings
from collections.abc import Callable
from datetime import timedelta
from typing import Any

import redis

from webguard.limit_status import ClientError, LimitExceeded, Status, epoch_utc_plus
from webguard.messages import Request

DEFAULT_REQUEST_LIMIT = 5000
"""Default number of requests allowed per period."""

DEFAULT_PERIOD_SECS = 3600
"""Default period length in seconds."""

DEFAULT_COOKIE_NAME = "sid"
"""Default name of the cookie used as the rate limit key."""

GetKeyFn = Callable[[Request], "str | None"]


def _as_timedelta(period: timedelta | int | float) -> timedelta:
    return period if isinstance(period, timedelta) else timedelta(seconds=period)


class Limiter:
    """Counts requests per key in fixed windows stored in Redis."""

    def __init__(self, client: Any, limit: int, period: timedelta, get_key_fn: GetKeyFn):
        self.client = client
        self.limit = limit
        self.period = _as_timedelta(period)
        self.get_key_fn = get_key_fn

    def __repr__(self) -> str:
        return f"Limiter(limit={self.limit!r}, period={self.period!r})"

    @staticmethod
    def builder(redis_url: str) -> Builder:
        """A builder with the default limit, period and cookie name."""
        return Builder(redis_url)

    def count(self, key: str) -> Status:
        """Consume one unit for ``key`` and return its status.

        Raises LimitExceeded once the count goes over the limit.
        """
        count, reset = self.track(key)
        status = Status.from_count(count, self.limit, reset)
        if count > self.limit:
            raise LimitExceeded(status)
        return status

    def track(self, key: str) -> tuple[int, int]:
        """Count ``key`` in the current period.

        Returns the count so far and the UNIX time at which the period resets.
        """
        key = str(key)
        expires = int(self.period.total_seconds())
        try:
            with self.client.pipeline(transaction=True) as pipe:
                pipe.set(key, 0, ex=expires, nx=True)
                pipe.incr(key)
                pipe.ttl(key)
                _, count, ttl = pipe.execute()
        except redis.RedisError as err:
            raise ClientError(err) from err
        reset = epoch_utc_plus(timedelta(seconds=int(ttl)))
        return int(count), reset


class Builder:
    """Configures and creates a Limiter."""

    def __init__(self, redis_url: str):
        self.redis_url = str(redis_url)
        self.limit_value = DEFAULT_REQUEST_LIMIT
        self.period_value = timedelta(seconds=DEFAULT_PERIOD_SECS)
        self.get_key_fn: GetKeyFn | None = None
        self.cookie_name_value = DEFAULT_COOKIE_NAME

    def __repr__(self) -> str:
        return (
            f"Builder(redis_url={self.redis_url!r}, limit={self.limit_value!r}, "
            f"period={self.period_value!r})"
        )

    def limit(self, limit: int) -> Builder:
        """Set the number of requests allowed per period."""
        self.limit_value = limit
        return self

    def period(self, period: timedelta | int | float) -> Builder:
        """Set the length of the window."""
        self.period_value = _as_timedelta(period)
        return self

    def key_by(self, resolver: GetKeyFn) -> Builder:
        """Derive the rate limit key from each request with ``resolver``.

        Conflicts with ``cookie_name``.
        """
        self.get_key_fn = resolver
        return self

    def cookie_name(self, cookie_name: str) -> Builder:
        """Use the cookie ``cookie_name`` as the rate limit key (prefer ``key_by``)."""
        warnings.warn("Prefer `key_by`.", DeprecationWarning, stacklevel=2)
        if self.get_key_fn is not None:
            raise RuntimeError(
                "This method should not be used in combination of get_key "
                "as they overwrite each other"
            )
        self.cookie_name_value = cookie_name
        return self

    def _cookie_key_fn(self) -> GetKeyFn:
        name = self.cookie_name_value

        def key_from_cookie(request: Request) -> str | None:
            value = request.cookie(name)
            return None if value is None else f"{name}={value}"

        return key_from_cookie

    def build(self) -> Limiter:
        """Create the Limiter; raises ClientError if the Redis URL is invalid."""
        get_key = self.get_key_fn if self.get_key_fn is not None else self._cookie_key_fn()
        try:
            client = redis.Redis.from_url(self.redis_url)
        except (ValueError, redis.RedisError) as err:
            raise ClientError(err) from err
        return Limiter(client, self.limit_value, self.period_value, get_key)