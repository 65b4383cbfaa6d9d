"""Rate limit status reports and the errors of the rate limiter."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

_OUT_OF_RANGE = "Source duration value is out of range for the target type"


@dataclass(frozen=True)
class Status:
    """The limit status for a key.

    ``limit`` is the number of requests allowed per period, ``remaining`` how
    many are left, and ``reset_epoch_utc`` a UNIX timestamp of roughly when
    the next period begins.
    """

    limit: int
    remaining: int
    reset_epoch_utc: int

    @classmethod
    def from_count(cls, count: int, limit: int, reset_epoch_utc: int) -> Status:
        """Build a status from the number of requests counted so far."""
        remaining = 0 if count >= limit else limit - count
        return cls(limit, remaining, reset_epoch_utc)


class LimitationError(Exception):
    """Base class for failures of the rate limiter."""


class ClientError(LimitationError):
    """The Redis client failed to connect or run a query."""

    def __init__(self, source: BaseException | None = None):
        super().__init__("Redis client failed to connect or run a query")
        self.source = source


class LimitExceeded(LimitationError):
    """The limit is exceeded for a key."""

    def __init__(self, status: Status):
        super().__init__("Limit is exceeded for a key")
        self.status = status


class OtherLimitationError(LimitationError):
    """A generic rate limiter failure carrying a description."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def epoch_utc_plus(duration: timedelta | int | float) -> int:
    """The UNIX timestamp, rounded to whole seconds, ``duration`` from now."""
    try:
        delta = duration if isinstance(duration, timedelta) else timedelta(seconds=duration)
        if delta < timedelta(0):
            raise OverflowError
        moment = datetime.now(timezone.utc) + delta
    except OverflowError:
        raise OtherLimitationError(_OUT_OF_RANGE) from None
    return max(math.floor(moment.timestamp() + 0.5), 0)