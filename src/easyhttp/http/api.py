# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""One-shot helpers: build a fresh client, send one request, return the response."""

from __future__ import annotations

from typing import Any

from ..config import HttpSettings
from .client import Client
from .response import Response


def _execute(client: Client) -> Response:
    # The throwaway client lives until the caller reads or closes the response.
    try:
        return client.do(close_client=True)
    except BaseException:
        client.close()
        raise


def get(url: str, *, settings: HttpSettings | None = None) -> Response:
    """Send a single GET request."""
    return _execute(Client(settings).get(url))


def head(url: str, *, settings: HttpSettings | None = None) -> Response:
    """Send a single HEAD request."""
    return _execute(Client(settings).head(url))


def post(url: str, content_type: str, body: Any, *, settings: HttpSettings | None = None) -> Response:
    """Send a single POST request with `body` labelled as `content_type`."""
    return _execute(Client(settings).post(url, content_type, body))


__all__ = ["get", "head", "post"]
