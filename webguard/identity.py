"""Verified user identities stored in the session."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Protocol

from webguard.identity_config import LogoutBehaviour
from webguard.identity_errors import (
    LoginError,
    LostIdentityError,
    MissingIdentityError,
    SessionExpiryError,
    SessionGetError,
)

ID_KEY = "actix_identity.user_id"
LAST_VISIT_UNIX_TIMESTAMP_KEY = "actix_identity.last_visited_at"
LOGIN_UNIX_TIMESTAMP_KEY = "actix_identity.logged_in_at"

_MISSING_INNER = (
    "No `IdentityInner` instance was found in the extensions attached to the incoming "
    "request. This usually means that the identity middleware has not been registered. "
    "`Identity` cannot be used unless the identity machinery is properly mounted."
)


class SessionLike(Protocol):
    """The session operations the identity machinery relies on.

    ``get`` returns None for absent keys; ``get`` and ``insert`` raise
    TypeError or ValueError when a value cannot be read or stored.
    """

    def get(self, key: str) -> Any: ...

    def insert(self, key: str, value: Any) -> None: ...

    def remove(self, key: str) -> Any: ...

    def purge(self) -> None: ...

    def renew(self) -> None: ...


def _session_get(session: SessionLike, key: str, expected: type) -> Any:
    try:
        value = session.get(key)
    except (TypeError, ValueError) as err:
        raise SessionGetError(str(err)) from err
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, expected):
        raise SessionGetError(f"session value under {key!r} has an unexpected type")
    return value


def _session_insert(session: SessionLike, key: str, value: Any) -> None:
    try:
        session.insert(key, value)
    except (TypeError, ValueError) as err:
        raise LoginError(err) from err


def _now_timestamp() -> int:
    return int(datetime.now(timezone.utc).timestamp())


def _from_timestamp(timestamp: int | None) -> datetime | None:
    if timestamp is None:
        return None
    try:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as err:
        raise SessionExpiryError(err) from err


@dataclass
class IdentityInner:
    """The session and settings the identity machinery attaches to a request."""

    session: SessionLike
    logout_behaviour: LogoutBehaviour = LogoutBehaviour.PURGE_SESSION
    is_login_deadline_enabled: bool = False
    is_visit_deadline_enabled: bool = False

    @classmethod
    def extract(cls, extensions: dict[Any, Any]) -> IdentityInner:
        """Fetch a copy of the instance stored in ``extensions`` under this class."""
        inner = extensions.get(cls)
        if inner is None:
            raise RuntimeError(_MISSING_INNER)
        return dataclasses.replace(inner)

    def get_identity(self) -> str:
        """The user id attached to the session; raises MissingIdentityError if none."""
        user_id = _session_get(self.session, ID_KEY, str)
        if user_id is None:
            raise MissingIdentityError()
        return user_id


class Identity:
    """A verified user identity, tied to the lifetime of the session."""

    def __init__(self, inner: IdentityInner):
        self._inner = inner

    def __repr__(self) -> str:
        return f"Identity({self._inner!r})"

    def id(self) -> str:
        """The user id of the current session."""
        user_id = _session_get(self._inner.session, ID_KEY, str)
        if user_id is None:
            raise LostIdentityError()
        return user_id

    @staticmethod
    def login(extensions: dict[Any, Any], user_id: str) -> Identity:
        """Attach a verified user id to the current session and renew it."""
        inner = IdentityInner.extract(extensions)
        session = inner.session
        _session_insert(session, ID_KEY, user_id)
        now = _now_timestamp()
        if inner.is_login_deadline_enabled:
            _session_insert(session, LOGIN_UNIX_TIMESTAMP_KEY, now)
        if inner.is_visit_deadline_enabled:
            _session_insert(session, LAST_VISIT_UNIX_TIMESTAMP_KEY, now)
        session.renew()
        return Identity(inner)

    def logout(self) -> None:
        """Remove the identity from the session as the logout behaviour dictates."""
        inner = self._inner
        if inner.logout_behaviour is LogoutBehaviour.PURGE_SESSION:
            inner.session.purge()
            return
        inner.session.remove(ID_KEY)
        if inner.is_login_deadline_enabled:
            inner.session.remove(LOGIN_UNIX_TIMESTAMP_KEY)
        if inner.is_visit_deadline_enabled:
            inner.session.remove(LAST_VISIT_UNIX_TIMESTAMP_KEY)

    @staticmethod
    def extract(extensions: dict[Any, Any]) -> Identity:
        """The identity of the session in ``extensions``; raises if there is none."""
        inner = IdentityInner.extract(extensions)
        inner.get_identity()
        return Identity(inner)

    def logged_at(self) -> datetime | None:
        """When the user logged in, if that was recorded."""
        return _from_timestamp(_session_get(self._inner.session, LOGIN_UNIX_TIMESTAMP_KEY, int))

    def last_visited_at(self) -> datetime | None:
        """When the user last visited, if that was recorded."""
        return _from_timestamp(
            _session_get(self._inner.session, LAST_VISIT_UNIX_TIMESTAMP_KEY, int)
        )

    def set_last_visited_at(self) -> None:
        """Record the current time as the user's last visit."""
        _session_insert(self._inner.session, LAST_VISIT_UNIX_TIMESTAMP_KEY, _now_timestamp())


def get_identity(request: Any) -> Identity:
    """The identity attached to the session of anything that carries ``extensions``."""
    return Identity.extract(request.extensions)