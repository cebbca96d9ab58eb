# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy and exception helpers.

Construction errors (bad URL, no pending request) subclass `ValueError`: they signal
programmer misuse and are not meant to be caught and retried. Everything that can go wrong
at runtime (encoding, proxy configuration, transport, body reads) derives from
`EasyHttpError` so callers can handle it in one place.
"""

from __future__ import annotations

import socket
import ssl as ssl_module
from collections.abc import Iterator
from enum import Enum

import httpx


class ErrorCategory(str, Enum):
    TIMEOUT = "TIMEOUT"
    PROXY_ERROR = "PROXY_ERROR"
    SSL_ERROR = "SSL_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    DNS_ERROR = "DNS_ERROR"
    TOO_MANY_REDIRECTS = "TOO_MANY_REDIRECTS"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class EasyHttpError(Exception):
    """Base exception for all easyhttp errors."""


class RequestConstructionError(EasyHttpError, ValueError):
    """The request could not be built from the given arguments."""


class InvalidURLError(RequestConstructionError):
    """The request URL could not be parsed."""

    def __init__(self, url: str, reason: str = ""):
        message = f"invalid URL {url!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.url = url


class NoRequestError(RequestConstructionError):
    """A request-level helper was used before a method+URL call."""

    def __init__(self, message: str = "no pending request; call get()/post()/... first"):
        super().__init__(message)


class EncodingError(EasyHttpError):
    """A payload could not be serialized into a request body."""

    def __init__(self, fmt: str, reason: str):
        super().__init__(f"{fmt} encoding failed: {reason}")
        self.format = fmt


class DecodingError(EasyHttpError, ValueError):
    """A response body could not be decoded."""


class ProxyConfigurationError(EasyHttpError):
    """The proxy URL is malformed or uses an unsupported scheme."""


class TransportError(EasyHttpError):
    """The round trip failed; no response is available."""

    category = ErrorCategory.UNKNOWN_ERROR

    def __init__(self, message: str, *, url: str | None = None, category: ErrorCategory | None = None):
        super().__init__(message)
        self.url = url
        if category is not None:
            self.category = category


class RequestTimeoutError(TransportError):
    category = ErrorCategory.TIMEOUT


class ProxyError(TransportError):
    category = ErrorCategory.PROXY_ERROR


class ConnectError(TransportError):
    category = ErrorCategory.CONNECTION_ERROR


class TooManyRedirectsError(TransportError):
    category = ErrorCategory.TOO_MANY_REDIRECTS


class UseLastResponse(Exception):
    """Raised by a redirect policy to stop following and return the redirect response as-is."""


class BodyReadError(EasyHttpError):
    """The response body stream failed while being read."""


class BodyConsumedError(BodyReadError):
    """The response body was already read and released."""

    def __init__(self, message: str = "response body already consumed"):
        super().__init__(message)


def _exception_chain(exc: BaseException, limit: int = 8) -> Iterator[BaseException]:
    current: BaseException | None = exc
    depth = 0
    while current is not None and depth < limit:
        yield current
        current = current.__cause__ or current.__context__
        depth += 1


def categorize_exception(exc: BaseException) -> ErrorCategory:
    """
    Map Python/httpx exceptions to ErrorCategory.
    """
    if isinstance(exc, TransportError):
        return exc.category

    if isinstance(exc, httpx.TimeoutException):
        return ErrorCategory.TIMEOUT

    if isinstance(exc, httpx.ProxyError):
        return ErrorCategory.PROXY_ERROR

    if isinstance(exc, httpx.TooManyRedirects):
        return ErrorCategory.TOO_MANY_REDIRECTS

    # httpx wraps httpcore which wraps the OS error; look through the whole chain.
    chain = list(_exception_chain(exc))
    if any(isinstance(item, (ssl_module.SSLError, ssl_module.CertificateError)) for item in chain):
        return ErrorCategory.SSL_ERROR

    if any(isinstance(item, (socket.gaierror, socket.herror)) for item in chain):
        return ErrorCategory.DNS_ERROR

    if isinstance(exc, (httpx.ConnectError, httpx.RemoteProtocolError, httpx.NetworkError)):
        return ErrorCategory.CONNECTION_ERROR

    if isinstance(exc, (ConnectionError, ConnectionRefusedError, ConnectionResetError)):
        return ErrorCategory.CONNECTION_ERROR

    return ErrorCategory.UNKNOWN_ERROR


def transport_error_from(exc: BaseException, *, url: str | None = None) -> TransportError:
    """Wrap a low-level exception in the matching TransportError subclass."""
    if isinstance(exc, TransportError):
        return exc
    category = categorize_exception(exc)
    message = str(exc) or type(exc).__name__
    if category is ErrorCategory.TIMEOUT:
        return RequestTimeoutError(message, url=url)
    if category is ErrorCategory.PROXY_ERROR:
        return ProxyError(message, url=url)
    if category is ErrorCategory.TOO_MANY_REDIRECTS:
        return TooManyRedirectsError(message, url=url)
    if category in (ErrorCategory.CONNECTION_ERROR, ErrorCategory.DNS_ERROR, ErrorCategory.SSL_ERROR):
        return ConnectError(message, url=url, category=category)
    return TransportError(message, url=url, category=category)


def error_category_to_reason(category: ErrorCategory | None) -> str:
    """User-facing reason string."""
    mapping = {
        ErrorCategory.TIMEOUT: "Request timed out",
        ErrorCategory.PROXY_ERROR: "Proxy connection failed",
        ErrorCategory.SSL_ERROR: "TLS/certificate issue",
        ErrorCategory.CONNECTION_ERROR: "Network connectivity issue",
        ErrorCategory.DNS_ERROR: "DNS resolution failure",
        ErrorCategory.TOO_MANY_REDIRECTS: "Too many redirects",
        ErrorCategory.UNKNOWN_ERROR: "Network error during request",
        None: "",
    }
    return mapping.get(category, "Request failed due to network error")


__all__ = [
    "BodyConsumedError",
    "BodyReadError",
    "ConnectError",
    "DecodingError",
    "EasyHttpError",
    "EncodingError",
    "ErrorCategory",
    "InvalidURLError",
    "NoRequestError",
    "ProxyConfigurationError",
    "ProxyError",
    "RequestConstructionError",
    "RequestTimeoutError",
    "TooManyRedirectsError",
    "TransportError",
    "UseLastResponse",
    "categorize_exception",
    "error_category_to_reason",
    "transport_error_from",
]
