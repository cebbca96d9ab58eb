# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import httpx
import pytest

from easyhttp.cli import main as cli_main
from easyhttp.cli.main import build_parser, main
from easyhttp.config import HttpSettings
from easyhttp.http.client import Client


@pytest.fixture
def served(monkeypatch):
    sent = []

    def handler(request):
        request.read()
        sent.append(request)
        if request.url.host == "down.example":
            raise httpx.ConnectError("refused", request=request)
        if request.url.path == "/moved":
            return httpx.Response(301, headers={"Location": "/final"})
        return httpx.Response(200, content=b"body-bytes", headers={"X-Served": "yes"})

    class MockedClient(Client):
        def __init__(self, settings=None, *, transport=None):
            super().__init__(settings or HttpSettings(), transport=httpx.MockTransport(handler))

    monkeypatch.setattr(cli_main, "Client", MockedClient)
    return sent


def test_build_parser_defaults():
    args = build_parser().parse_args(["example.com"])
    assert args.url == "example.com"
    assert args.method is None
    assert args.header == []
    assert args.include is False


def test_build_parser_rejects_malformed_pairs(capsys):
    with pytest.raises(SystemExit) as info:
        build_parser().parse_args(["example.com", "-H", "no-colon"])
    assert info.value.code == 2
    assert "expected KEY:VALUE" in capsys.readouterr().err


def test_main_get_prints_body(served, capsys):
    assert main(["example.com/x", "-H", "X-A: 1", "-q", "k=v", "-A", "cli/1"]) == 0
    out = capsys.readouterr().out
    assert out == "body-bytes"
    request = served[-1]
    assert request.method == "GET"
    assert request.url.query == b"k=v"
    assert request.headers["X-A"] == "1"
    assert request.headers["User-Agent"] == "cli/1"


def test_main_form_data_implies_post_and_include_headers(served, capsys):
    assert main(["example.com/form", "-d", "b=x y", "-d", "a=1", "-u", "me:pw", "-i"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("HTTP 200 OK")
    assert "x-served: yes" in out.lower()
    assert out.endswith("body-bytes")
    request = served[-1]
    assert request.method == "POST"
    assert request.content == b"a=1&b=x+y"
    assert request.headers["Authorization"].startswith("Basic ")


def test_main_json_body_and_explicit_method(served):
    assert main(["example.com/api", "-X", "put", "--json", '{"a": 1}']) == 0
    request = served[-1]
    assert request.method == "PUT"
    assert request.content == b'{"a": 1}'
    assert request.headers["Content-Type"] == HttpSettings().json_content_type


def test_main_no_redirects_returns_redirect(served, capsys):
    assert main(["example.com/moved", "--no-redirects", "-i"]) == 0
    assert capsys.readouterr().out.startswith("HTTP 301")
    assert len(served) == 1


def test_main_output_file(served, tmp_path, capsys):
    target = tmp_path / "dl" / "file.bin"
    assert main(["example.com/file", "-o", str(target)]) == 0
    assert target.read_bytes() == b"body-bytes"
    assert "saved 10 bytes" in capsys.readouterr().err


def test_main_transport_error_exit_code(served, capsys):
    assert main(["down.example"]) == 1
    err = capsys.readouterr().err
    assert "Network connectivity issue" in err


def test_main_bad_proxy_exit_code(served, capsys):
    assert main(["example.com", "--proxy", "ftp://proxy.local"]) == 1
    assert "unsupported proxy scheme" in capsys.readouterr().err


@pytest.mark.parametrize("method", ["GET", "head"])
def test_main_rejects_body_with_bodyless_method(served, capsys, method):
    with pytest.raises(SystemExit) as info:
        main(["example.com", "-X", method, "-d", "a=1"])
    assert info.value.code == 2
    assert "cannot be combined" in capsys.readouterr().err
    assert served == []
