"""Failure modes of identity operations."""

from __future__ import annotations

from http import HTTPStatus


class LoginError(Exception):
    """Attaching an identity to the session failed."""

    def __init__(self, source: BaseException):
        super().__init__(str(source))
        self.source = source

    def status_code(self) -> HTTPStatus:
        """Login failures are reported as 401 Unauthorized."""
        return HTTPStatus.UNAUTHORIZED


class GetIdentityError(Exception):
    """Base class for failures while retrieving an identity."""

    def status_code(self) -> HTTPStatus:
        """The HTTP status that reports this failure."""
        return HTTPStatus.UNAUTHORIZED


class SessionExpiryError(GetIdentityError):
    """The session has expired and is no longer valid."""

    def __init__(self, source: BaseException | None = None):
        super().__init__("The given session has expired and is no longer valid")
        self.source = source


class LostIdentityError(GetIdentityError):
    """Identity information vanished after being validated; indicates a bug."""

    def __init__(self) -> None:
        super().__init__(
            "The identity information in the current session has disappeared after having "
            "been successfully validated. This is likely to be a bug."
        )

    def status_code(self) -> HTTPStatus:
        return HTTPStatus.INTERNAL_SERVER_ERROR


class MissingIdentityError(GetIdentityError):
    """No identity information is attached to the current session."""

    def __init__(self) -> None:
        super().__init__("There is no identity information attached to the current session")


class SessionGetError(GetIdentityError):
    """Reading a value from the session store failed."""

    def __init__(self, message: str = "Failed to deserialize a value from the session state"):
        super().__init__(message)