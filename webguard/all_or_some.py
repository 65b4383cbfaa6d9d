"""A value that is either everything or a specific set of things."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class AllOrSome(Generic[T]):
    """Either everything is allowed, or only the contained value is.

    The default is "all".
    """

    value: T | None = None
    everything: bool = True

    @classmethod
    def all(cls) -> AllOrSome[T]:
        """Everything is allowed; usually equivalent to ``*``."""
        return cls()

    @classmethod
    def some(cls, value: T) -> AllOrSome[T]:
        """Only ``value`` is allowed."""
        return cls(value, False)

    def is_all(self) -> bool:
        """Whether this allows everything."""
        return self.everything

    def is_some(self) -> bool:
        """Whether this allows only a specific value."""
        return not self.everything

    def as_ref(self) -> T | None:
        """The contained value, or None when everything is allowed."""
        return None if self.everything else self.value