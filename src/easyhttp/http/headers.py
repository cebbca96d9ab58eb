# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Header utilities.

HTTP header field names are case-insensitive (RFC 9110). Pending requests keep their headers
in `httpx.Headers`, which already matches names case-insensitively and keeps every value of a
repeated field, so these helpers only deal with copying and a few well-known fields.
"""

from __future__ import annotations

import base64
from collections.abc import Iterable

import httpx

# Computed by httpx for each outgoing request; never copied from one request to another.
WIRE_HEADERS = frozenset({"host", "content-length", "transfer-encoding"})


def basic_auth_value(username: str, password: str) -> str:
    """Return the `Authorization` value for HTTP basic auth."""
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def copy_headers(
    source: httpx.Headers,
    target: httpx.Headers,
    *,
    exclude: Iterable[str] = (),
) -> None:
    """
    Overwrite `target` with every field of `source` except the excluded names.

    Each copied field replaces all values `target` had for it; fields only present in
    `target` are left alone.
    """
    skipped = {name.lower() for name in exclude} | WIRE_HEADERS
    pairs = [(name, value) for name, value in source.multi_items() if name.lower() not in skipped]
    # `Headers.update` drops the target's values for each incoming name, then keeps every pair.
    target.update(pairs)


def cookie_pairs(value: str | None) -> list[tuple[str, str]]:
    """Split a `Cookie` header value into name/value pairs, keeping their order."""
    pairs = []
    for item in (value or "").split(";"):
        name, _, cookie_value = item.strip().partition("=")
        if name:
            pairs.append((name, cookie_value))
    return pairs


def merge_cookie_headers(base: str | None, override: str | None) -> str | None:
    """
    Combine two `Cookie` header values.

    Cookies of `base` keep their position but take the value `override` gives the same
    name; cookies only present in `override` are appended. Returns None when both are empty.
    """
    overrides = dict(cookie_pairs(override))
    merged = [(name, overrides.pop(name, value)) for name, value in cookie_pairs(base)]
    merged.extend((name, value) for name, value in cookie_pairs(override) if name in overrides)
    if not merged:
        return None
    return "; ".join(f"{name}={value}" for name, value in merged)


__all__ = ["WIRE_HEADERS", "basic_auth_value", "cookie_pairs", "copy_headers", "merge_cookie_headers"]
