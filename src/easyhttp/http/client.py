# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Fluent request builder and the per-client transport it executes on."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..config import CONTENT_TYPE_FORM, HttpSettings, load_http_settings
from ..errors import NoRequestError
from .body import EncodedBody, encode_form, encode_json, encode_raw, encode_xml
from .executor import build_request, send, start_deadline
from .headers import basic_auth_value
from .models import FormData, Method, RedirectPolicy, RequestDescriptor, TransportConfig, Values
from .response import Response
from .transport import build_http_client, new_cookie_jar, parse_proxy_url
from .url import normalize_url, query_add, query_del, query_get, query_set

logger = logging.getLogger(__name__)


class Client:
    """
    Build one request at a time and execute it.

    Usage:
        client = Client()
        client.get("example.com/search").query_set("q", "httpx")
        client.header["Accept"] = "application/json"
        data = client.do().json()

    Every method+URL call (`get`, `post`, ...) replaces the pending request. The client-level
    `query` and `params` collections survive those calls and are applied on every `do()`
    until `reset()` clears them.

    Each instance owns its own transport configuration and httpx client; pass
    `transport=` to share one connection pool between clients on purpose. A client is not
    meant to be mutated from several threads at once.
    """

    def __init__(self, settings: HttpSettings | None = None, *, transport: httpx.BaseTransport | None = None):
        self.settings = settings or load_http_settings()
        self.request: RequestDescriptor | None = None
        self.query = Values()
        self.params = Values()
        self.config = TransportConfig.from_settings(self.settings, transport=transport)
        self._cookies = new_cookie_jar(self.config.use_cookiejar)
        self._http: httpx.Client | None = None
        if self.settings.proxy:
            self.use_proxy(self.settings.proxy)

    # -- pending request ---------------------------------------------------------------

    def _new_request(self, method: Method, url: str | httpx.URL) -> Client:
        self.request = RequestDescriptor(method=method, url=normalize_url(url))
        return self

    def _pending(self) -> RequestDescriptor:
        if self.request is None:
            raise NoRequestError()
        return self.request

    def reset(self) -> Client:
        """Drop the accumulated query and form parameters."""
        self.query = Values()
        self.params = Values()
        return self

    def get(self, url: str | httpx.URL) -> Client:
        return self._new_request(Method.GET, url)

    def head(self, url: str | httpx.URL) -> Client:
        return self._new_request(Method.HEAD, url)

    def put(self, url: str | httpx.URL) -> Client:
        return self._new_request(Method.PUT, url)

    def patch(self, url: str | httpx.URL) -> Client:
        return self._new_request(Method.PATCH, url)

    def delete(self, url: str | httpx.URL) -> Client:
        return self._new_request(Method.DELETE, url)

    def options(self, url: str | httpx.URL) -> Client:
        return self._new_request(Method.OPTIONS, url)

    def post(self, url: str | httpx.URL, content_type: str | None = None, body: Any = None) -> Client:
        encoded = encode_raw(body)
        self._new_request(Method.POST, url)
        if content_type:
            self._pending().headers["Content-Type"] = content_type
        return self._set_body(encoded)

    def post_form(self, url: str | httpx.URL, data: FormData | None = None) -> Client:
        """POST `data` (or the client's `params` when omitted) as a urlencoded form."""
        source = data if data is not None else self.params
        encoded = encode_form(source) if source else None
        self._new_request(Method.POST, url)
        request = self._pending()
        request.headers["Content-Type"] = CONTENT_TYPE_FORM
        if encoded is not None:
            self._set_body(encoded)
        return self

    def post_json(self, url: str | httpx.URL, value: Any) -> Client:
        """POST `value` as JSON; EncodingError leaves the pending request untouched."""
        encoded = encode_json(value, content_type=self.settings.json_content_type)
        self._new_request(Method.POST, url)
        return self._set_body(encoded)

    def post_xml(self, url: str | httpx.URL, value: Any) -> Client:
        """POST `value` as XML; EncodingError leaves the pending request untouched."""
        encoded = encode_xml(value)
        self._new_request(Method.POST, url)
        return self._set_body(encoded)

    def body(self, source: Any) -> Client:
        """Replace the body with a raw source; `None` removes it."""
        return self._set_body(encode_raw(source))

    def _set_body(self, encoded: EncodedBody) -> Client:
        request = self._pending()
        request.set_body(encoded.content, encoded.content_length)
        if encoded.content_type:
            request.headers["Content-Type"] = encoded.content_type
        return self

    @property
    def header(self) -> httpx.Headers:
        """The pending request's headers; edits apply directly to the request."""
        return self._pending().headers

    def set_header(self, key: str, value: str) -> Client:
        self.header[key] = value
        return self

    def add_header(self, key: str, value: str) -> Client:
        headers = self.header
        values = [*headers.get_list(key), value]
        headers.update([(key, item) for item in values])
        return self

    def add_cookie(self, name: str, value: str) -> Client:
        self._pending().cookies.append((name, value))
        return self

    def user_agent(self, user_agent: str) -> Client:
        return self.set_header("User-Agent", user_agent)

    def host(self, hostname: str) -> Client:
        self._pending().host = hostname
        return self

    def basic_auth(self, username: str, password: str) -> Client:
        return self.set_header("Authorization", basic_auth_value(username, password))

    def query_add(self, key: str, value: Any) -> Client:
        request = self._pending()
        request.url = query_add(request.url, key, str(value))
        return self

    def query_set(self, key: str, value: Any) -> Client:
        request = self._pending()
        request.url = query_set(request.url, key, str(value))
        return self

    def query_del(self, key: str) -> Client:
        request = self._pending()
        request.url = query_del(request.url, key)
        return self

    def query_get(self, key: str) -> str:
        return query_get(self._pending().url, key)

    # -- transport configuration -------------------------------------------------------

    def _reconfigure(self) -> None:
        http, self._http = self._http, None
        # Closing an httpx client closes its transport, which a shared pool's owner must do.
        if http is not None and self.config.transport is None:
            http.close()

    def use_cookiejar(self, enabled: bool = True) -> Client:
        """Start a fresh in-memory cookie jar (or stop storing cookies when disabled)."""
        self.config.use_cookiejar = enabled
        self._cookies = new_cookie_jar(enabled)
        self._reconfigure()
        return self

    def set_timeout(self, seconds: float | None) -> Client:
        """Deadline for the whole round trip; `None` or `0` disables it."""
        self.config.timeout = seconds if seconds else None
        self._reconfigure()
        return self

    def use_proxy(self, proxy: str) -> Client:
        """Route requests through an HTTP(S) or SOCKS5 proxy; ProxyConfigurationError on bad input."""
        self.config.proxy = parse_proxy_url(proxy)
        self._reconfigure()
        logger.debug("Using proxy %s", self.config.proxy)
        return self

    def set_check_redirect(self, policy: RedirectPolicy | None) -> Client:
        """Replace the redirect policy; `None` restores the default."""
        self.config.check_redirect = policy
        return self

    @property
    def cookies(self) -> httpx.Cookies:
        """Cookies stored by the jar (empty without `use_cookiejar()`)."""
        return httpx.Cookies(self._cookies)

    @property
    def http_client(self) -> httpx.Client:
        if self._http is None:
            self._http = build_http_client(self.config, cookies=self._cookies, user_agent=self.settings.user_agent)
        return self._http

    # -- execution ---------------------------------------------------------------------

    def build(self) -> httpx.Request:
        """The httpx request `do()` would send, with query and form params applied."""
        return build_request(self.http_client, self._pending(), query=self.query, params=self.params)

    def do(self, *, close_client: bool = False) -> Response:
        """
        Send the pending request once and return the (unread) response.

        The timeout set with `set_timeout()` covers sending, redirects and reading the body.
        With `close_client=True` the client is closed together with the response.
        """
        request = self.build()
        deadline = start_deadline(self.config)
        raw = send(self.http_client, request, self.config, deadline=deadline)
        return Response(raw, on_close=self.close if close_client else None, deadline=deadline)

    def close(self) -> None:
        self._reconfigure()

    def __enter__(self) -> Client:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()


__all__ = ["Client"]
