# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Redirect decision policies.

A policy is called for every redirect the executor is about to follow, with the request
httpx prepared for the next hop and every request already sent (`via[0]` is the request
the caller built). It may edit the next request in place, raise to abort the chain, or
raise `UseLastResponse` to hand the redirect response back to the caller.
"""

from __future__ import annotations

import httpx

from ..errors import TooManyRedirectsError, UseLastResponse
from .headers import copy_headers
from .models import RedirectPolicy

DEFAULT_MAX_REDIRECTS = 10


def make_check_redirect(max_redirects: int = DEFAULT_MAX_REDIRECTS) -> RedirectPolicy:
    """
    Build the default policy.

    Stops with TooManyRedirectsError once `max_redirects` redirects were followed. Otherwise
    every header of the *first* request in the chain is carried onto the next request,
    except `Referer` and `Cookie` (the executor merges cookies for every hop).
    """

    def check_redirect(request: httpx.Request, via: list[httpx.Request]) -> None:
        if len(via) >= max_redirects:
            raise TooManyRedirectsError(f"stopped after {max_redirects} redirects", url=str(request.url))
        if not via:
            return
        copy_headers(via[0].headers, request.headers, exclude=("Referer", "Cookie"))

    return check_redirect


default_check_redirect = make_check_redirect()


def no_redirects(request: httpx.Request, via: list[httpx.Request]) -> None:  # noqa: ARG001
    """Policy that never follows: the first 3xx response is returned as-is."""
    raise UseLastResponse()


__all__ = ["DEFAULT_MAX_REDIRECTS", "default_check_redirect", "make_check_redirect", "no_redirects"]
