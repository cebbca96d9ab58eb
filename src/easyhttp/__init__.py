# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
easyhttp package entrypoint.

A fluent wrapper around httpx: build a request step by step (method, URL, headers, query,
form/JSON/XML/raw bodies, cookies, basic auth), configure the client's transport (timeout,
proxy, cookie jar, redirect policy), send it once and read the response as bytes, text,
JSON or a file.
"""

from .config import HttpSettings, load_http_settings
from .errors import (
    BodyConsumedError,
    BodyReadError,
    ConnectError,
    DecodingError,
    EasyHttpError,
    EncodingError,
    ErrorCategory,
    InvalidURLError,
    NoRequestError,
    ProxyConfigurationError,
    ProxyError,
    RequestConstructionError,
    RequestTimeoutError,
    TooManyRedirectsError,
    TransportError,
    UseLastResponse,
)
from .http import (
    BodyResult,
    Client,
    Method,
    Response,
    Values,
    default_check_redirect,
    get,
    head,
    make_check_redirect,
    no_redirects,
    post,
)
from .log import setup_logging
from .version import __version__

__all__ = [
    "BodyConsumedError",
    "BodyReadError",
    "BodyResult",
    "Client",
    "ConnectError",
    "DecodingError",
    "EasyHttpError",
    "EncodingError",
    "ErrorCategory",
    "HttpSettings",
    "InvalidURLError",
    "Method",
    "NoRequestError",
    "ProxyConfigurationError",
    "ProxyError",
    "RequestConstructionError",
    "RequestTimeoutError",
    "Response",
    "TooManyRedirectsError",
    "TransportError",
    "UseLastResponse",
    "Values",
    "default_check_redirect",
    "get",
    "head",
    "load_http_settings",
    "make_check_redirect",
    "no_redirects",
    "post",
    "setup_logging",
    "__version__",
]
