"""Configuration options that tune the behaviour of the identity machinery."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum


class LogoutBehaviour(Enum):
    """What ``Identity.logout`` does to the current session."""

    PURGE_SESSION = "purge_session"
    """Destroy the whole session, including state unrelated to the identity."""

    DELETE_IDENTITY_KEYS = "delete_identity_keys"
    """Remove only the identity information; the rest of the session is kept."""


@dataclass
class IdentityConfig:
    """Settings of the identity middleware.

    By default logout purges the session and neither deadline is enabled.
    """

    on_logout: LogoutBehaviour = LogoutBehaviour.PURGE_SESSION
    login_deadline: timedelta | None = None
    visit_deadline: timedelta | None = None


class IdentityMiddlewareBuilder:
    """Fluent builder for the identity middleware configuration."""

    def __init__(self) -> None:
        self.config = IdentityConfig()

    def __repr__(self) -> str:
        return f"IdentityMiddlewareBuilder({self.config!r})"

    def logout_behaviour(self, logout_behaviour: LogoutBehaviour) -> IdentityMiddlewareBuilder:
        """Choose how logout affects the current session."""
        self.config.on_logout = logout_behaviour
        return self

    def login_deadline(self, deadline: timedelta | None) -> IdentityMiddlewareBuilder:
        """Log users out once ``deadline`` has passed since login; None disables it."""
        self.config.login_deadline = deadline
        return self

    def visit_deadline(self, deadline: timedelta | None) -> IdentityMiddlewareBuilder:
        """Log users out once ``deadline`` has passed since their last visit; None disables it."""
        self.config.visit_deadline = deadline
        return self