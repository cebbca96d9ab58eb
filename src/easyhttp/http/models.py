# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""HTTP request/transport data models used by the fluent client."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union
from urllib.parse import urlencode

import httpx

from ..config import HttpSettings

RedirectPolicy = Callable[[httpx.Request, list[httpx.Request]], None]
RequestContent = Union[bytes, Iterator[bytes], None]


class Method(str, Enum):
    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    OPTIONS = "OPTIONS"


class Values:
    """
    Multi-valued string parameters, encoded as `application/x-www-form-urlencoded`.

    Keys keep insertion order in memory; `encode()` sorts them so the wire form is stable.
    """

    def __init__(self, initial: Mapping[str, Any] | Iterable[tuple[str, Any]] | None = None):
        self._data: dict[str, list[str]] = {}
        if initial:
            self.update(initial)

    def add(self, key: str, value: Any) -> Values:
        self._data.setdefault(str(key), []).append(str(value))
        return self

    def set(self, key: str, value: Any) -> Values:
        self._data[str(key)] = [str(value)]
        return self

    def get(self, key: str, default: str = "") -> str:
        values = self._data.get(str(key))
        if not values:
            return default
        return values[0]

    def get_all(self, key: str) -> list[str]:
        return list(self._data.get(str(key), []))

    def delete(self, key: str) -> Values:
        self._data.pop(str(key), None)
        return self

    def update(self, other: Mapping[str, Any] | Iterable[tuple[str, Any]]) -> Values:
        """Append values from a mapping (scalar or sequence values) or from key/value pairs."""
        items = other.items() if isinstance(other, (Mapping, Values)) else other
        for key, value in items:
            if isinstance(value, (list, tuple)):
                for item in value:
                    self.add(key, item)
            else:
                self.add(key, value)
        return self

    def clear(self) -> None:
        self._data.clear()

    def items(self) -> list[tuple[str, str]]:
        return [(key, value) for key, values in self._data.items() for value in values]

    def encode(self) -> str:
        pairs = [(key, value) for key in sorted(self._data) for value in self._data[key]]
        return urlencode(pairs)

    def copy(self) -> Values:
        return Values(self.items())

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __bool__(self) -> bool:
        return any(self._data.values())

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Values):
            return self._data == other._data
        return NotImplemented

    def __repr__(self) -> str:
        return f"Values({self._data!r})"


@dataclass
class RequestDescriptor:
    """The pending, mutable request built up by `Client` calls before `do()`."""

    method: Method
    url: httpx.URL
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    content: RequestContent = None
    content_length: int | None = None
    cookies: list[tuple[str, str]] = field(default_factory=list)
    host: str | None = None
    body_set: bool = False

    def set_body(self, content: RequestContent, content_length: int | None) -> None:
        self.content = content
        self.content_length = content_length
        self.body_set = content is not None

    def cookie_header(self) -> str | None:
        if not self.cookies:
            return None
        return "; ".join(f"{name}={value}" for name, value in self.cookies)


@dataclass
class TransportConfig:
    """Per-client transport configuration; changed only by explicit configuration calls."""

    timeout: float | None = 30.0
    connect_timeout: float | None = 10.0
    proxy: str | None = None
    check_redirect: RedirectPolicy | None = None
    max_redirects: int = 10
    use_cookiejar: bool = False
    verify: bool = True
    transport: httpx.BaseTransport | None = None

    @classmethod
    def from_settings(cls, settings: HttpSettings, transport: httpx.BaseTransport | None = None) -> TransportConfig:
        return cls(
            timeout=settings.timeout,
            connect_timeout=settings.connect_timeout,
            max_redirects=max(0, settings.max_redirects),
            use_cookiejar=settings.use_cookiejar,
            verify=settings.verify_ssl,
            transport=transport,
        )

    def httpx_timeout(self) -> httpx.Timeout:
        """Per-phase timeouts; connect never waits longer than the overall deadline."""
        connect = self.connect_timeout
        if self.timeout is not None:
            connect = self.timeout if connect is None else min(connect, self.timeout)
        return httpx.Timeout(self.timeout, connect=connect)


@dataclass
class BodyResult:
    """Outcome of reading a response body: the bytes, or the error that stopped the read."""

    content: bytes = b""
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return bool(self.content)


FormData = Union[Values, Mapping[str, Union[str, Sequence[str]]]]


__all__ = [
    "BodyResult",
    "FormData",
    "Method",
    "RedirectPolicy",
    "RequestContent",
    "RequestDescriptor",
    "TransportConfig",
    "Values",
]
