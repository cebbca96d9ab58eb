# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import socket
import threading
import time

import httpx
import pytest

from easyhttp.config import HttpSettings
from easyhttp.errors import ConnectError, ErrorCategory, ProxyConfigurationError, RequestTimeoutError, TransportError
from easyhttp.http import transport as transport_module
from easyhttp.http.client import Client
from easyhttp.http.headers import merge_cookie_headers
from easyhttp.http.models import TransportConfig
from easyhttp.http.transport import build_http_client, new_cookie_jar, parse_proxy_url


class FakeHttpxClient:
    instances = []

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.closed = False
        FakeHttpxClient.instances.append(self)

    def close(self):
        self.closed = True


@pytest.fixture
def fake_httpx(monkeypatch):
    FakeHttpxClient.instances = []
    monkeypatch.setattr(httpx, "Client", FakeHttpxClient)
    return FakeHttpxClient


def test_parse_proxy_url_variants(monkeypatch):
    assert parse_proxy_url("proxy.local:3128") == "http://proxy.local:3128"
    assert parse_proxy_url(" https://proxy.local:8443 ") == "https://proxy.local:8443"

    monkeypatch.setattr(transport_module, "socks_supported", lambda: True)
    assert parse_proxy_url("socks5://127.0.0.1:1080") == "socks5://127.0.0.1:1080"


@pytest.mark.parametrize("raw", ["", "ftp://proxy.local:21", "socks4://proxy.local:1080", "http://"])
def test_parse_proxy_url_rejects(raw):
    with pytest.raises(ProxyConfigurationError):
        parse_proxy_url(raw)


def test_socks_proxy_requires_extra(monkeypatch):
    monkeypatch.setattr(transport_module, "socks_supported", lambda: False)
    with pytest.raises(ProxyConfigurationError) as info:
        parse_proxy_url("socks5://127.0.0.1:1080")
    assert "socks" in str(info.value)


def test_build_http_client_kwargs(fake_httpx):
    config = TransportConfig(timeout=5.0, connect_timeout=2.0, proxy="http://proxy.local:3128", verify=False)
    jar = new_cookie_jar(True)
    client = build_http_client(config, cookies=jar, user_agent="UA/1.0")

    assert client.kwargs["timeout"] == httpx.Timeout(5.0, connect=2.0)
    assert client.kwargs["follow_redirects"] is False
    assert client.kwargs["verify"] is False
    assert client.kwargs["cookies"] is jar
    assert client.kwargs["headers"] == {"User-Agent": "UA/1.0"}
    assert client.kwargs["proxy"] == "http://proxy.local:3128"
    assert "transport" not in client.kwargs


def test_connect_timeout_never_exceeds_deadline():
    assert TransportConfig(timeout=1.0, connect_timeout=10.0).httpx_timeout() == httpx.Timeout(1.0, connect=1.0)
    assert TransportConfig(timeout=None, connect_timeout=3.0).httpx_timeout() == httpx.Timeout(None, connect=3.0)


def test_client_settings_flow_into_http_client(fake_httpx):
    client = Client(HttpSettings(timeout=4.0, connect_timeout=1.0, verify_ssl=False, user_agent="UA/2", proxy="p.local:8080"))
    http = client.http_client
    assert http is client.http_client
    assert http.kwargs["proxy"] == "http://p.local:8080"
    assert http.kwargs["verify"] is False
    assert http.kwargs["headers"]["User-Agent"] == "UA/2"


def test_configuration_change_rebuilds_http_client(fake_httpx):
    client = Client(HttpSettings())
    first = client.http_client
    client.set_timeout(0)
    assert client.config.timeout is None
    assert first.closed is True
    second = client.http_client
    assert second is not first
    assert second.kwargs["timeout"] == httpx.Timeout(None, connect=client.config.connect_timeout)

    client.use_proxy("proxy.local:3128")
    assert client.http_client.kwargs["proxy"] == "http://proxy.local:3128"


def test_invalid_proxy_leaves_config_unchanged(fake_httpx):
    client = Client(HttpSettings())
    client.use_proxy("http://good.local:1")
    with pytest.raises(ProxyConfigurationError):
        client.use_proxy("gopher://bad.local:70")
    assert client.config.proxy == "http://good.local:1"


def _cookie_server(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/login":
        return httpx.Response(302, headers={"Location": "/me", "Set-Cookie": "token=abc; Path=/"})
    return httpx.Response(200, content=request.headers.get("Cookie", "").encode())


def test_cookie_jar_replays_cookies_across_redirects():
    client = Client(HttpSettings(), transport=httpx.MockTransport(_cookie_server)).use_cookiejar()
    response = client.get("http://example.com/login").do()
    assert response.text() == "token=abc"
    assert client.cookies.get("token") == "abc"

    client.use_cookiejar()
    assert client.cookies.get("token") is None


def test_without_cookie_jar_nothing_is_stored():
    client = Client(HttpSettings(), transport=httpx.MockTransport(_cookie_server))
    response = client.get("http://example.com/login").do()
    assert response.text() == ""
    assert len(client.cookies) == 0


def test_cookie_jar_from_settings():
    client = Client(HttpSettings(use_cookiejar=True), transport=httpx.MockTransport(_cookie_server))
    assert client.get("http://example.com/login").do().text() == "token=abc"


def test_tiny_timeout_fails_quickly(monkeypatch):
    for name in ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy"):
        monkeypatch.delenv(name, raising=False)

    # Accepts connections into the backlog but never answers.
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(8)
    port = server.getsockname()[1]
    try:
        client = Client(HttpSettings()).get(f"http://127.0.0.1:{port}/").set_timeout(0.001)
        started = time.monotonic()
        with pytest.raises(RequestTimeoutError) as info:
            client.do()
        assert time.monotonic() - started < 2
        assert info.value.category == ErrorCategory.TIMEOUT
        client.close()
    finally:
        server.close()


def test_transport_failures_are_wrapped():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = Client(HttpSettings(), transport=httpx.MockTransport(refuse)).get("example.com")
    with pytest.raises(ConnectError) as info:
        client.do()
    assert info.value.url.startswith("http://example.com")
    assert isinstance(info.value.__cause__, httpx.ConnectError)

    def slow(request):
        raise httpx.ReadTimeout("slow", request=request)

    client = Client(HttpSettings(), transport=httpx.MockTransport(slow)).get("example.com")
    with pytest.raises(RequestTimeoutError):
        client.do()

    def broken(request):
        raise httpx.UnsupportedProtocol("nope", request=request)

    client = Client(HttpSettings(), transport=httpx.MockTransport(broken)).get("example.com")
    with pytest.raises(TransportError) as info:
        client.do()
    assert not isinstance(info.value.__cause__, TransportError)


def _echo_cookie_server(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/login":
        return httpx.Response(302, headers={"Location": "/me", "Set-Cookie": "session=new; Path=/"})
    return httpx.Response(200, content=request.headers.get("Cookie", "").encode())


def _cookie_set(header: str) -> set:
    return {part.strip() for part in header.split(";") if part.strip()}


def _jar_client():
    client = Client(HttpSettings(), transport=httpx.MockTransport(_echo_cookie_server)).use_cookiejar()
    client.cookies.set("pref", "1", domain="example.com")
    return client


def test_jar_cookies_and_redirect_cookies_reach_next_hop():
    client = _jar_client()
    seen = client.get("http://example.com/login").do().text()
    assert _cookie_set(seen) == {"pref=1", "session=new"}


def test_added_cookies_are_sent_with_jar_cookies():
    client = _jar_client()
    seen = client.get("http://example.com/me").add_cookie("manual", "x").do().text()
    assert _cookie_set(seen) == {"pref=1", "manual=x"}


def test_added_cookies_follow_redirects_next_to_new_jar_cookies():
    client = _jar_client()
    seen = client.get("http://example.com/login").add_cookie("manual", "x").do().text()
    assert _cookie_set(seen) == {"pref=1", "manual=x", "session=new"}


def test_redirect_cookie_replaces_stale_value():
    client = Client(HttpSettings(), transport=httpx.MockTransport(_echo_cookie_server)).use_cookiejar()
    client.cookies.set("session", "old", domain="example.com")
    assert client.get("http://example.com/login").do().text() == "session=new"


def test_merge_cookie_headers():
    assert merge_cookie_headers("a=1; b=2", "b=3; c=4") == "a=1; b=3; c=4"
    assert merge_cookie_headers("a=1", None) == "a=1"
    assert merge_cookie_headers(None, " c=4 ") == "c=4"
    assert merge_cookie_headers(None, "") is None


@pytest.fixture
def no_env_proxy(monkeypatch):
    for name in ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def trickle_server():
    """Local HTTP server that writes its canned response in pieces with a pause between them."""
    stop = threading.Event()
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    listener.listen(1)

    def start(pieces, pause):
        def run():
            conn, _ = listener.accept()
            with conn:
                received = b""
                while b"\r\n\r\n" not in received:
                    chunk = conn.recv(4096)
                    if not chunk:
                        return
                    received += chunk
                try:
                    for piece in pieces:
                        if stop.is_set():
                            return
                        conn.sendall(piece)
                        time.sleep(pause)
                except OSError:
                    return

        threading.Thread(target=run, daemon=True).start()
        return f"http://127.0.0.1:{listener.getsockname()[1]}/"

    yield start
    stop.set()
    listener.close()


def test_deadline_covers_slow_body(no_env_proxy, trickle_server):
    head = b"HTTP/1.1 200 OK\r\nContent-Length: 20\r\nConnection: close\r\n\r\n"
    url = trickle_server([head] + [b"x"] * 20, 0.15)
    client = Client(HttpSettings()).get(url).set_timeout(0.5)

    started = time.monotonic()
    response = client.do()
    result = response.read_body()
    elapsed = time.monotonic() - started
    client.close()

    assert elapsed < 1.5
    assert not result.ok
    assert isinstance(result.error, RequestTimeoutError)
    assert result.content == b""
    assert response.is_consumed


def test_deadline_covers_slow_headers(no_env_proxy, trickle_server):
    pieces = [b"HTTP/1.1 200 OK\r\n", b"Content-Length: 2\r\n", b"X-Slow: 1\r\n", b"X-Slow: 2\r\n", b"X-Slow: 3\r\n", b"\r\nok"]
    url = trickle_server(pieces, 0.2)
    client = Client(HttpSettings()).get(url).set_timeout(0.5)

    started = time.monotonic()
    with pytest.raises(RequestTimeoutError):
        client.do()
    assert time.monotonic() - started < 2
    client.close()


def test_deadline_leaves_fast_responses_alone(no_env_proxy, trickle_server):
    url = trickle_server([b"HTTP/1.1 200 OK\r\nContent-Length: 5\r\nConnection: close\r\n\r\nhello"], 0)
    client = Client(HttpSettings()).get(url).set_timeout(5)
    result = client.do().read_body()
    client.close()
    assert result.ok
    assert result.content == b"hello"
