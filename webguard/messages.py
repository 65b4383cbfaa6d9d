"""HTTP request and response primitives shared by the middleware."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any

_TOKEN_CHARS = frozenset(
    "!#$%&'*+-.^_`|~0123456789"
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
)


def _is_token(text: str) -> bool:
    return bool(text) and all(char in _TOKEN_CHARS for char in text)


def _header_name(name: str) -> str:
    """Validate a header name and return its canonical lower-case form."""
    if not isinstance(name, str) or not _is_token(name):
        raise ValueError(f"invalid header name: {name!r}")
    return name.lower()


def _is_visible_ascii(value: str) -> bool:
    """Whether a header value consists only of visible ASCII and tabs."""
    return all(char == "\t" or " " <= char <= "~" for char in value)


def _check_header_value(value: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"invalid header value: {value!r}")
    if any((ord(char) < 32 and char != "\t") or ord(char) == 127 for char in value):
        raise ValueError(f"invalid header value: {value!r}")
    return value


class Headers:
    """Case-insensitive header map holding one value per name, in insertion order."""

    def __init__(self, items: Mapping[str, str] | Iterable[tuple[str, str]] | None = None):
        self._items: dict[str, str] = {}
        pairs = items.items() if isinstance(items, Mapping) else (items or ())
        for name, value in pairs:
            self.insert(name, value)

    def get(self, name: str) -> str | None:
        """Return the value stored under ``name``, or None."""
        if not isinstance(name, str):
            return None
        return self._items.get(name.lower())

    def insert(self, name: str, value: str) -> None:
        """Set ``name`` to ``value``, replacing any previous value."""
        self._items[_header_name(name)] = _check_header_value(value)

    def remove(self, name: str) -> str | None:
        """Remove ``name`` and return its value, or None if it was absent."""
        if not isinstance(name, str):
            return None
        return self._items.pop(name.lower(), None)

    def names(self) -> list[str]:
        """The canonical names of all headers present."""
        return list(self._items)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._items))

    def __repr__(self) -> str:
        return f"Headers({self._items!r})"


def _as_headers(value: Any) -> Headers:
    return value if isinstance(value, Headers) else Headers(value)


@dataclass
class Request:
    """An incoming HTTP request as seen by the middleware."""

    method: str = "GET"
    headers: Headers = field(default_factory=Headers)
    path: str = "/"
    extensions: dict[Any, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.headers = _as_headers(self.headers)

    def cookie(self, name: str) -> str | None:
        """Return the value of the cookie ``name`` from the Cookie header."""
        header = self.headers.get("cookie")
        if header is None:
            return None
        for part in header.split(";"):
            key, sep, value = part.strip().partition("=")
            if sep and key == name:
                return value
        return None


@dataclass
class Response:
    """An outgoing HTTP response."""

    status: int = HTTPStatus.OK
    headers: Headers = field(default_factory=Headers)
    body: bytes | str = b""

    def __post_init__(self) -> None:
        self.headers = _as_headers(self.headers)