# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Response helpers: one-shot body reads as bytes, text, JSON or a file on disk."""

from __future__ import annotations

import json as jsonlib
import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import httpx

from ..errors import BodyConsumedError, BodyReadError, DecodingError, RequestTimeoutError, transport_error_from
from .executor import deadline_exceeded
from .models import BodyResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Response:
    """
    A received response whose body has not been read yet.

    The body can be read exactly once: `read_body()`, `bytes()`, `text()`, `json()` and
    `download()` all consume it and release the connection. Later reads yield an empty
    result. Callers that never read the body should call `close()` (or use the response
    as a context manager) to release the connection.

    When the request carried a deadline, body reads stop once it passes.
    """

    def __init__(
        self,
        raw: httpx.Response,
        *,
        on_close: Callable[[], None] | None = None,
        deadline: float | None = None,
    ):
        self.raw = raw
        self.deadline = deadline
        self._consumed = False
        self._on_close = on_close

    @property
    def status_code(self) -> int:
        return self.raw.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self.raw.headers

    @property
    def url(self) -> str:
        return str(self.raw.url)

    @property
    def request(self) -> httpx.Request:
        return self.raw.request

    @property
    def history(self) -> list[httpx.Response]:
        return list(self.raw.history)

    @property
    def ok(self) -> bool:
        return self.raw.is_success

    @property
    def is_consumed(self) -> bool:
        return self._consumed

    def read_body(self) -> BodyResult:
        """Read the whole body into memory and release the stream."""
        if self._consumed:
            return BodyResult(error=BodyConsumedError())
        self._consumed = True
        try:
            chunks = []
            for chunk in self.raw.iter_bytes():
                chunks.append(chunk)
                if deadline_exceeded(self.deadline):
                    raise RequestTimeoutError("request deadline exceeded while reading the body", url=self.url)
            return BodyResult(content=b"".join(chunks))
        except RequestTimeoutError as exc:
            logger.warning("Reading response body from %s failed: %s", self.url, exc)
            return BodyResult(error=exc)
        except httpx.TimeoutException as exc:
            error = transport_error_from(exc, url=self.url)
            error.__cause__ = exc
            logger.warning("Reading response body from %s failed: %s", self.url, error)
            return BodyResult(error=error)
        except (httpx.HTTPError, OSError) as exc:
            logger.warning("Reading response body from %s failed: %s", self.url, exc)
            error = BodyReadError(str(exc) or type(exc).__name__)
            error.__cause__ = exc
            return BodyResult(error=error)
        finally:
            self._release()

    def bytes(self) -> bytes:
        """Body bytes; empty when the read failed or the body was already consumed."""
        return self.read_body().content

    @property
    def content(self) -> bytes:
        return self.bytes()

    def text(self) -> str:
        data = self.bytes()
        encoding = self.raw.charset_encoding or "utf-8"
        try:
            return data.decode(encoding, errors="replace")
        except LookupError:
            return data.decode("utf-8", errors="replace")

    def json(self, factory: Callable[[Any], T] | None = None) -> Any:
        """
        Decode the body as JSON.

        When `factory` is given it receives the decoded value and its result is returned,
        e.g. `response.json(User.from_dict)`.
        """
        data = self.bytes()
        try:
            value = jsonlib.loads(data)
        except ValueError as exc:
            raise DecodingError(f"invalid JSON body from {self.url}: {exc}") from exc
        if factory is None:
            return value
        return factory(value)

    def download(self, path: str | os.PathLike[str]) -> int:
        """
        Save the body to `path`, creating parent directories; returns the bytes written.

        The file is created or truncated even when the body is empty. OSError propagates.
        """
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        data = self.bytes()
        with target.open("wb") as fh:
            fh.write(data)
        logger.debug("Saved %d bytes from %s to %s", len(data), self.url, target)
        return len(data)

    def close(self) -> None:
        self._consumed = True
        self._release()

    def _release(self) -> None:
        self.raw.close()
        if self._on_close is not None:
            on_close, self._on_close = self._on_close, None
            on_close()

    def __repr__(self) -> str:
        return f"<Response [{self.status_code}] {self.url}>"

    def __enter__(self) -> Response:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()


__all__ = ["Response"]
