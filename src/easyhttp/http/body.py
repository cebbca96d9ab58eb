# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Request body encoders.

Every encoder returns an `EncodedBody`: the content handed to httpx, the `Content-Type` it
implies (if any) and the content length when it is known before sending. Structured
payloads are serialized eagerly so encoding failures surface before any request state
changes or network activity.
"""

from __future__ import annotations

import dataclasses
import io
import json
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from lxml import etree

from ..config import CONTENT_TYPE_FORM, CONTENT_TYPE_JSON, CONTENT_TYPE_XML
from ..errors import EncodingError
from .models import FormData, RequestContent, Values

READ_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class EncodedBody:
    content: RequestContent
    content_type: str | None = None
    content_length: int | None = None


@runtime_checkable
class JsonSerializable(Protocol):
    def to_dict(self) -> Any: ...


@runtime_checkable
class XmlSerializable(Protocol):
    def to_xml(self) -> Any: ...


def encode_raw(source: Any) -> EncodedBody:
    """
    Wrap a raw body source.

    Buffers (`bytes`, `bytearray`, `memoryview`, `str`, `io.BytesIO`, `io.StringIO`) have a
    known length. Other readers and byte iterables are streamed and left for the transport
    to frame (chunked transfer).
    """
    if source is None:
        return EncodedBody(content=None)
    if isinstance(source, (bytes, bytearray, memoryview)):
        data = bytes(source)
        return EncodedBody(content=data, content_length=len(data))
    if isinstance(source, str):
        data = source.encode("utf-8")
        return EncodedBody(content=data, content_length=len(data))
    if isinstance(source, io.BytesIO):
        # Only the unread part counts, like a reader positioned mid-buffer.
        data = source.read()
        return EncodedBody(content=data, content_length=len(data))
    if isinstance(source, io.StringIO):
        data = source.read().encode("utf-8")
        return EncodedBody(content=data, content_length=len(data))
    if callable(getattr(source, "read", None)):
        return EncodedBody(content=_iter_reader(source))
    if isinstance(source, Iterable) and not isinstance(source, Mapping):
        return EncodedBody(content=_iter_chunks(source))
    raise TypeError(f"unsupported body type: {type(source).__name__}")


def _iter_reader(reader: Any) -> Iterator[bytes]:
    try:
        while True:
            chunk = reader.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            yield chunk.encode("utf-8") if isinstance(chunk, str) else bytes(chunk)
    finally:
        close = getattr(reader, "close", None)
        if callable(close):
            close()


def _iter_chunks(chunks: Iterable[Any]) -> Iterator[bytes]:
    for chunk in chunks:
        yield chunk.encode("utf-8") if isinstance(chunk, str) else bytes(chunk)


def encode_form(data: FormData) -> EncodedBody:
    values = data if isinstance(data, Values) else Values(data)
    body = values.encode().encode("ascii")
    return EncodedBody(content=body, content_type=CONTENT_TYPE_FORM, content_length=len(body))


def _jsonable(value: Any) -> Any:
    if isinstance(value, JsonSerializable):
        return value.to_dict()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    return value


def _json_default(value: Any) -> Any:
    converted = _jsonable(value)
    if converted is value:
        raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
    return converted


def encode_json(value: Any, content_type: str = CONTENT_TYPE_JSON) -> EncodedBody:
    """Serialize `value` as compact UTF-8 JSON; raises EncodingError when it cannot be."""
    try:
        text = json.dumps(_jsonable(value), default=_json_default, ensure_ascii=False, separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError, RecursionError) as exc:
        raise EncodingError("json", str(exc)) from exc
    body = text.encode("utf-8")
    return EncodedBody(content=body, content_type=content_type, content_length=len(body))


def encode_xml(value: Any) -> EncodedBody:
    """
    Serialize `value` as XML.

    Accepted values:
    - an lxml element
    - an object with `to_xml()` returning an element, `bytes` or `str`
    - a mapping with exactly one root key, e.g. `{"user": {"@id": "1", "name": "x"}}`
    """
    try:
        if isinstance(value, XmlSerializable):
            value = value.to_xml()
        if isinstance(value, (bytes, bytearray)):
            etree.fromstring(bytes(value))
            body = bytes(value)
        elif isinstance(value, str):
            body = value.encode("utf-8")
            etree.fromstring(body)
        else:
            element = value if etree.iselement(value) else _element_from_mapping(value)
            body = etree.tostring(element, encoding="utf-8")
    except EncodingError:
        raise
    except (TypeError, ValueError, etree.LxmlError) as exc:
        raise EncodingError("xml", str(exc)) from exc
    return EncodedBody(content=body, content_type=CONTENT_TYPE_XML, content_length=len(body))


def _element_from_mapping(value: Any) -> Any:
    if not isinstance(value, Mapping) or len(value) != 1:
        raise EncodingError("xml", "expected an element or a mapping with a single root key")
    tag, content = next(iter(value.items()))
    if isinstance(content, (list, tuple)):
        raise EncodingError("xml", "the root element cannot repeat")
    root = etree.Element(str(tag))
    _fill_element(root, content)
    return root


def _fill_element(element: Any, content: Any) -> None:
    if content is None:
        return
    if isinstance(content, Mapping):
        for key, child in content.items():
            key = str(key)
            if key.startswith("@"):
                element.set(key[1:], _scalar_text(child))
            elif key == "#text":
                element.text = _scalar_text(child)
            elif isinstance(child, (list, tuple)):
                for item in child:
                    _fill_element(etree.SubElement(element, key), item)
            else:
                _fill_element(etree.SubElement(element, key), child)
        return
    if isinstance(content, (list, tuple)):
        raise EncodingError("xml", f"list content for <{element.tag}> must be keyed by a child name")
    element.text = _scalar_text(content)


def _scalar_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise EncodingError("xml", f"cannot serialize {type(value).__name__} as XML text")


__all__ = [
    "EncodedBody",
    "JsonSerializable",
    "XmlSerializable",
    "encode_form",
    "encode_json",
    "encode_raw",
    "encode_xml",
]
