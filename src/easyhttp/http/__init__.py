# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""HTTP client exports."""

from .api import get, head, post
from .body import EncodedBody, JsonSerializable, XmlSerializable, encode_form, encode_json, encode_raw, encode_xml
from .client import Client
from .headers import basic_auth_value, copy_headers
from .models import BodyResult, Method, RedirectPolicy, RequestDescriptor, TransportConfig, Values
from .redirects import DEFAULT_MAX_REDIRECTS, default_check_redirect, make_check_redirect, no_redirects
from .response import Response
from .transport import build_http_client, parse_proxy_url
from .url import normalize_url

__all__ = [
    "DEFAULT_MAX_REDIRECTS",
    "BodyResult",
    "Client",
    "EncodedBody",
    "JsonSerializable",
    "Method",
    "RedirectPolicy",
    "RequestDescriptor",
    "Response",
    "TransportConfig",
    "Values",
    "XmlSerializable",
    "basic_auth_value",
    "build_http_client",
    "copy_headers",
    "default_check_redirect",
    "encode_form",
    "encode_json",
    "encode_raw",
    "encode_xml",
    "get",
    "head",
    "make_check_redirect",
    "no_redirects",
    "normalize_url",
    "parse_proxy_url",
    "post",
]
