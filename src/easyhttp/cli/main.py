from __future__ import annotations

"""
easyhttp, a fluent convenience wrapper around httpx.
Copyright (C) 2025  Theori Inc.

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU Affero General Public License as published
by the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.

This program is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
GNU Affero General Public License for more details.

You should have received a copy of the GNU Affero General Public License
along with this program.  If not, see <https://www.gnu.org/licenses/>.
"""

"""easyhttp CLI."""

import argparse
import sys
from typing import Any

from ..config import HttpSettings, load_http_settings
from ..errors import EasyHttpError, error_category_to_reason
from ..http import Client, Method, Response, no_redirects
from ..log import setup_logging


def _pair(separator: str) -> Any:
    def parse(raw: str) -> tuple[str, str]:
        key, sep, value = raw.partition(separator)
        if not sep or not key.strip():
            raise argparse.ArgumentTypeError(f"expected KEY{separator}VALUE, got {raw!r}")
        return key.strip(), value.strip() if separator == ":" else value

    return parse


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Send one HTTP request and print (or save) the response")
    parser.add_argument("url", help="Request URL (scheme defaults to http)")
    parser.add_argument("-X", "--method", default=None, choices=[m.value for m in Method], type=str.upper)
    parser.add_argument("-H", "--header", action="append", default=[], type=_pair(":"), help="'Name: value' header")
    parser.add_argument("-q", "--query", action="append", default=[], type=_pair("="), help="query parameter k=v")
    parser.add_argument("-d", "--data", action="append", default=[], type=_pair("="), help="form field k=v (implies POST)")
    body = parser.add_mutually_exclusive_group()
    body.add_argument("--data-raw", default=None, help="raw request body")
    body.add_argument("--json", dest="json_body", default=None, help="JSON request body (sent as-is)")
    parser.add_argument("-u", "--user", default=None, help="basic auth as user:password")
    parser.add_argument("-A", "--user-agent", default=None)
    parser.add_argument("--proxy", default=None, help="http(s):// or socks5:// proxy")
    parser.add_argument("--timeout", type=float, default=None, help="round-trip deadline in seconds")
    parser.add_argument("--cookiejar", action="store_true", help="keep cookies across redirects")
    parser.add_argument("--no-redirects", action="store_true", help="return the first 3xx response")
    parser.add_argument("-k", "--insecure", action="store_true", help="Skip TLS certificate verification")
    parser.add_argument("-o", "--output", default=None, help="save the body to this file")
    parser.add_argument("-i", "--include", action="store_true", help="print status line and headers")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


BODYLESS_METHODS = ("GET", "HEAD")


def _has_body(args: argparse.Namespace) -> bool:
    return bool(args.data) or args.data_raw is not None or args.json_body is not None


def _prepare(client: Client, args: argparse.Namespace) -> Client:
    method = args.method or ("POST" if _has_body(args) else "GET")

    if args.json_body is not None:
        client.post(args.url, client.settings.json_content_type, args.json_body)
    elif args.data:
        client.post_form(args.url, [(key, value) for key, value in args.data])
    elif args.data_raw is not None:
        client.post(args.url, None, args.data_raw)
    else:
        client.get(args.url)

    # Body helpers always build a POST; switch the verb afterwards when asked to.
    client.request.method = Method(method)

    for key, value in args.query:
        client.query_add(key, value)
    for key, value in args.header:
        client.add_header(key, value)
    if args.user:
        username, _, password = args.user.partition(":")
        client.basic_auth(username, password)
    if args.user_agent:
        client.user_agent(args.user_agent)
    if args.timeout is not None:
        client.set_timeout(args.timeout)
    if args.proxy:
        client.use_proxy(args.proxy)
    if args.cookiejar:
        client.use_cookiejar()
    if args.no_redirects:
        client.set_check_redirect(no_redirects)
    return client


def _print_head(response: Response) -> None:
    print(f"HTTP {response.status_code} {response.raw.reason_phrase}")
    for key, value in response.headers.multi_items():
        print(f"{key}: {value}")
    print()


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.method in BODYLESS_METHODS and _has_body(args):
        parser.error(f"-X {args.method} cannot be combined with -d, --data-raw or --json")
    setup_logging("DEBUG" if args.verbose else None)

    settings: HttpSettings = load_http_settings()
    if args.insecure:
        settings.verify_ssl = False

    try:
        with Client(settings) as client:
            _prepare(client, args)
            response = client.do()
            if args.include:
                _print_head(response)
            if args.output:
                written = response.download(args.output)
                print(f"saved {written} bytes to {args.output}", file=sys.stderr)
            else:
                result = response.read_body()
                if not result.ok:
                    print(f"error: {result.error}", file=sys.stderr)
                    return 1
                sys.stdout.flush()
                sys.stdout.buffer.write(result.content)
                sys.stdout.flush()
    except EasyHttpError as exc:
        category = getattr(exc, "category", None)
        reason = error_category_to_reason(category) if category is not None else type(exc).__name__
        print(f"error: {reason}: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
