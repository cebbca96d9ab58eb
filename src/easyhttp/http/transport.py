# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Build the httpx client behind a `Client` from its TransportConfig."""

from __future__ import annotations

import importlib.util
import logging
from http.cookiejar import CookieJar, DefaultCookiePolicy

import httpx

from ..errors import ProxyConfigurationError
from .models import TransportConfig

logger = logging.getLogger(__name__)

PROXY_SCHEMES = frozenset({"http", "https", "socks5"})
DEFAULT_PROXY_SCHEME = "http"


class _RejectAllCookiesPolicy(DefaultCookiePolicy):
    """Cookie policy for clients without a cookie jar: nothing is stored or replayed."""

    def set_ok(self, cookie, request):  # noqa: ANN001
        return False

    def return_ok(self, cookie, request):  # noqa: ANN001
        return False


def new_cookie_jar(enabled: bool) -> CookieJar:
    if enabled:
        return CookieJar()
    return CookieJar(policy=_RejectAllCookiesPolicy())


def socks_supported() -> bool:
    """httpx speaks SOCKS only with its `socks` extra (the socksio package) installed."""
    return importlib.util.find_spec("socksio") is not None


def parse_proxy_url(raw: str) -> str:
    """
    Validate a proxy endpoint and return it in canonical form.

    A value without a scheme is treated as an HTTP proxy (`host:port` -> `http://host:port`).
    """
    text = str(raw or "").strip()
    if not text:
        raise ProxyConfigurationError("empty proxy URL")
    if "://" not in text:
        text = f"{DEFAULT_PROXY_SCHEME}://{text}"

    try:
        url = httpx.URL(text)
    except (httpx.InvalidURL, TypeError, ValueError) as exc:
        raise ProxyConfigurationError(f"invalid proxy URL {text!r}: {exc}") from exc

    if url.scheme not in PROXY_SCHEMES:
        raise ProxyConfigurationError(f"unsupported proxy scheme {url.scheme!r} in {text!r}")
    if not url.host:
        raise ProxyConfigurationError(f"proxy URL {text!r} has no host")
    if url.scheme == "socks5" and not socks_supported():
        raise ProxyConfigurationError("SOCKS proxies require the 'socks' extra: pip install 'easyhttp[socks]'")
    return str(url)


def build_http_client(config: TransportConfig, *, cookies: CookieJar, user_agent: str) -> httpx.Client:
    """
    Create the httpx client for one `Client`.

    Redirects are never followed by httpx itself; the executor walks the chain so the
    configured redirect policy sees every hop.
    """
    kwargs: dict = {
        "timeout": config.httpx_timeout(),
        "follow_redirects": False,
        "verify": config.verify,
        "cookies": cookies,
        "headers": {"User-Agent": user_agent},
    }
    if config.transport is not None:
        kwargs["transport"] = config.transport
    if config.proxy:
        kwargs["proxy"] = config.proxy
    logger.debug(
        "Building HTTP client (timeout=%s, proxy=%s, cookiejar=%s, shared_transport=%s)",
        config.timeout,
        config.proxy or "-",
        config.use_cookiejar,
        config.transport is not None,
    )
    return httpx.Client(**kwargs)


__all__ = [
    "PROXY_SCHEMES",
    "build_http_client",
    "new_cookie_jar",
    "parse_proxy_url",
    "socks_supported",
]
