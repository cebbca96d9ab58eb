# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Turn a pending RequestDescriptor into one round trip (plus followed redirects)."""

from __future__ import annotations

import logging
import time

import httpx

from ..errors import EasyHttpError, RequestTimeoutError, UseLastResponse, transport_error_from
from .body import encode_form
from .headers import merge_cookie_headers
from .models import RedirectPolicy, RequestDescriptor, TransportConfig, Values
from .redirects import make_check_redirect
from .url import merge_query

logger = logging.getLogger(__name__)


def build_request(
    http_client: httpx.Client,
    descriptor: RequestDescriptor,
    *,
    query: Values | None = None,
    params: Values | None = None,
) -> httpx.Request:
    """
    Materialize the descriptor into an httpx request without mutating it.

    Client-level query values are appended to the URL, and client-level form params become
    the body when no body was set explicitly. Cookies added to the request are sent
    alongside the ones the cookie jar holds for the URL.
    """
    url = merge_query(descriptor.url, query) if query else descriptor.url
    headers = descriptor.headers.copy()
    content = descriptor.content
    content_length = descriptor.content_length

    if not descriptor.body_set and params:
        form = encode_form(params)
        content = form.content
        content_length = form.content_length
        if "Content-Type" not in headers:
            headers["Content-Type"] = form.content_type

    if content is not None and content_length is not None and "Content-Length" not in headers:
        headers["Content-Length"] = str(content_length)

    if descriptor.host:
        headers["Host"] = descriptor.host

    # The jar only fills in `Cookie` when the header is absent, so manual cookies go on last.
    manual_cookies = merge_cookie_headers(headers.pop("Cookie", None), descriptor.cookie_header())
    request = http_client.build_request(descriptor.method.value, url, headers=headers, content=content)
    cookie_header = merge_cookie_headers(request.headers.get("Cookie"), manual_cookies)
    if cookie_header:
        request.headers["Cookie"] = cookie_header
    return request


def start_deadline(config: TransportConfig) -> float | None:
    """Monotonic time at which a round trip started now must be finished."""
    if config.timeout is None:
        return None
    return time.monotonic() + config.timeout


def deadline_exceeded(deadline: float | None) -> bool:
    return deadline is not None and time.monotonic() >= deadline


def _set_referer(next_request: httpx.Request, previous: httpx.Request) -> None:
    # Referer names the previous hop, never on an https -> http downgrade.
    next_request.headers.pop("Referer", None)
    if previous.url.scheme == "https" and next_request.url.scheme != "https":
        return
    next_request.headers["Referer"] = str(previous.url.copy_with(username=None, password=None, fragment=None))


def _carry_cookies(next_request: httpx.Request, first: httpx.Request) -> None:
    # Cookies of the first request follow the chain; the jar's current values win by name.
    cookie_header = merge_cookie_headers(first.headers.get("Cookie"), next_request.headers.get("Cookie"))
    if cookie_header:
        next_request.headers["Cookie"] = cookie_header


def _apply_deadline(request: httpx.Request, config: TransportConfig, deadline: float | None) -> None:
    if deadline is None:
        return
    remaining = deadline - time.monotonic()
    if remaining <= 0:
        raise RequestTimeoutError("request deadline exceeded", url=str(request.url))
    connect = remaining if config.connect_timeout is None else min(config.connect_timeout, remaining)
    request.extensions = {**request.extensions, "timeout": httpx.Timeout(remaining, connect=connect).as_dict()}


def send(
    http_client: httpx.Client,
    request: httpx.Request,
    config: TransportConfig,
    *,
    deadline: float | None = None,
) -> httpx.Response:
    """
    Send `request`, walking redirects through the configured policy.

    Returns the final response with its body still unread (streamed). Transport failures
    are raised as TransportError subclasses; no request is ever retried. Without an explicit
    `deadline` one is started from `config.timeout`.
    """
    policy: RedirectPolicy = config.check_redirect or make_check_redirect(config.max_redirects)
    if deadline is None:
        deadline = start_deadline(config)
    via: list[httpx.Request] = []
    history: list[httpx.Response] = []
    current = request

    while True:
        try:
            _apply_deadline(current, config, deadline)
            logger.debug("%s %s", current.method, current.url)
            response = http_client.send(current, stream=True, follow_redirects=False)
        except EasyHttpError as exc:
            logger.warning("%s %s failed: %s", current.method, current.url, exc)
            raise
        except (httpx.HTTPError, OSError) as exc:
            error = transport_error_from(exc, url=str(current.url))
            logger.warning("%s %s failed: %s (%s)", current.method, current.url, error, error.category.value)
            raise error from exc
        response.history = list(history)

        # Per-read timeouts restart on every chunk, so a trickling header block can outlast them.
        if deadline_exceeded(deadline):
            response.close()
            logger.warning("%s %s failed: deadline exceeded while receiving headers", current.method, current.url)
            raise RequestTimeoutError("request deadline exceeded", url=str(current.url))

        next_request = response.next_request
        if next_request is None:
            return response

        _set_referer(next_request, current)
        _carry_cookies(next_request, request)
        via.append(current)
        try:
            policy(next_request, via)
        except UseLastResponse:
            logger.debug("Redirect policy kept the %s response from %s", response.status_code, current.url)
            return response
        except BaseException:
            response.close()
            raise

        logger.debug("Following %s redirect to %s", response.status_code, next_request.url)
        try:
            response.read()
        except httpx.HTTPError as exc:
            raise transport_error_from(exc, url=str(current.url)) from exc
        finally:
            response.close()
        history.append(response)
        current = next_request


__all__ = ["build_request", "deadline_exceeded", "send", "start_deadline"]
