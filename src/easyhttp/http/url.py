# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""URL helpers: scheme defaulting, query-string mutation and merging."""

from __future__ import annotations

from urllib.parse import parse_qsl

import httpx

from ..errors import InvalidURLError
from .models import Values

DEFAULT_SCHEME = "http"


def normalize_url(raw: str | httpx.URL) -> httpx.URL:
    """
    Parse a request URL, defaulting the scheme to `http`.

    - `example.com/path` -> `http://example.com/path`
    - `//example.com/path` keeps its host and gets the `http` scheme
    - anything httpx cannot parse, or a URL without a host, raises InvalidURLError
    """
    if isinstance(raw, httpx.URL):
        text = str(raw)
    else:
        text = str(raw or "").strip()
    if not text:
        raise InvalidURLError(text, "empty URL")

    if text.startswith("//"):
        text = f"{DEFAULT_SCHEME}:{text}"
    elif not text.lower().startswith(("http://", "https://")):
        text = f"{DEFAULT_SCHEME}://{text}"

    try:
        url = httpx.URL(text)
    except (httpx.InvalidURL, TypeError, ValueError) as exc:
        raise InvalidURLError(text, str(exc)) from exc
    if not url.host:
        raise InvalidURLError(text, "missing host")
    return url


def query_values(url: httpx.URL) -> Values:
    """Return the URL's query string as a Values collection."""
    raw = url.query.decode("ascii", errors="replace")
    return Values(parse_qsl(raw, keep_blank_values=True))


def with_query(url: httpx.URL, values: Values) -> httpx.URL:
    """Return a copy of `url` whose query string is the encoding of `values`."""
    return url.copy_with(query=values.encode().encode("ascii"))


def query_add(url: httpx.URL, key: str, value: str) -> httpx.URL:
    return with_query(url, query_values(url).add(key, value))


def query_set(url: httpx.URL, key: str, value: str) -> httpx.URL:
    return with_query(url, query_values(url).set(key, value))


def query_del(url: httpx.URL, key: str) -> httpx.URL:
    return with_query(url, query_values(url).delete(key))


def query_get(url: httpx.URL, key: str) -> str:
    return query_values(url).get(key)


def merge_query(url: httpx.URL, extra: Values) -> httpx.URL:
    """
    Append `extra` to the URL's raw query string.

    The existing query is kept byte-for-byte; the new pairs are joined with `&`.
    """
    encoded = extra.encode()
    if not encoded:
        return url
    existing = url.query.decode("ascii", errors="replace")
    combined = f"{existing}&{encoded}" if existing else encoded
    return url.copy_with(query=combined.encode("ascii"))


__all__ = [
    "DEFAULT_SCHEME",
    "merge_query",
    "normalize_url",
    "query_add",
    "query_del",
    "query_get",
    "query_set",
    "query_values",
    "with_query",
]
