"""Renderer message protocol.

The renderer talks to the build through a single channel. Every line it
prints is one JSON message carrying a tag; this module defines the closed set
of message types and decodes raw JSON into them.

Key types:
- LogMessage, InitialData, PageProgress, Errors: the four protocol messages.
- RenderedPage: one pre-rendered page carried by PageProgress.
- HeadTag, JsonLdTag: head elements attached to a page.

Key function:
- decode_message: Turn a parsed JSON object into a ProtocolMessage.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Union

from .errors import ProtocolViolation


@dataclass(frozen=True)
class HeadTag:
    """A plain head element such as ``<meta>`` or ``<link>``."""

    name: str
    attributes: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class JsonLdTag:
    """A structured-data block rendered as ``application/ld+json``."""

    contents: dict[str, Any]


SeoTag = Union[HeadTag, JsonLdTag]


@dataclass(frozen=True)
class RenderedPage:
    """A page produced by the renderer.

    Attributes:
        route: Route before normalization; "" is the site root.
        html: Pre-rendered body markup.
        head_tags: Head elements in document order.
        content_json: Opaque static data for client-side hydration.
        title: Document title.
    """

    route: str
    html: str
    head_tags: tuple[SeoTag, ...] = ()
    content_json: Any = None
    title: str = ""


@dataclass(frozen=True)
class GeneratedFile:
    path: str
    content: str


@dataclass(frozen=True)
class LogMessage:
    value: str


@dataclass(frozen=True)
class InitialData:
    manifest: dict[str, Any]
    files_to_generate: tuple[GeneratedFile, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PageProgress:
    page: RenderedPage


@dataclass(frozen=True)
class Errors:
    details: str


ProtocolMessage = Union[LogMessage, InitialData, PageProgress, Errors]


def decode_line(line: str | bytes) -> ProtocolMessage:
    """Decode one line of renderer output.

    Raises:
        ProtocolViolation: If the line is not a JSON object or is not a
            known message.
    """
    try:
        raw = json.loads(line)
    except ValueError as exc:
        raise ProtocolViolation(f"Renderer sent invalid JSON: {exc}") from exc
    return decode_message(raw)


def decode_message(raw: Any) -> ProtocolMessage:
    """Decode a parsed JSON value into a protocol message.

    Args:
        raw: Object as printed by the renderer.

    Returns:
        The matching message dataclass.

    Raises:
        ProtocolViolation: On unknown tags or missing fields.
    """
    if not isinstance(raw, dict):
        raise ProtocolViolation(f"Expected a JSON object, got {type(raw).__name__}")

    if raw.get("command") == "log":
        return LogMessage(value=str(raw.get("value", "")))

    tag = raw.get("tag")
    decoder = _DECODERS.get(tag)
    if decoder is None:
        raise ProtocolViolation(f"Unknown message tag: {tag!r}")
    try:
        return decoder(_first_arg(raw))
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise ProtocolViolation(f"Malformed {tag} message: {exc}") from exc


def _first_arg(raw: dict[str, Any]) -> Any:
    args = raw.get("args")
    if not isinstance(args, list) or not args:
        raise ProtocolViolation(f"Message {raw.get('tag')!r} has no arguments")
    return args[0]


def _decode_log(arg: Any) -> LogMessage:
    return LogMessage(value=str(arg))


def _decode_initial_data(arg: dict[str, Any]) -> InitialData:
    files = tuple(
        GeneratedFile(path=str(item["path"]), content=str(item["content"]))
        for item in arg.get("filesToGenerate") or []
    )
    manifest = arg["manifest"]
    if not isinstance(manifest, dict):
        raise TypeError("manifest must be an object")
    return InitialData(manifest=manifest, files_to_generate=files)


def _decode_page_progress(arg: dict[str, Any]) -> PageProgress:
    page = RenderedPage(
        route=str(arg["route"]),
        html=str(arg["html"]),
        head_tags=tuple(decode_head_tag(tag) for tag in arg.get("head") or []),
        content_json=arg.get("contentJson"),
        title=str(arg.get("title", "")),
    )
    return PageProgress(page=page)


def _decode_errors(arg: Any) -> Errors:
    return Errors(details=arg if isinstance(arg, str) else json.dumps(arg))


def decode_head_tag(raw: dict[str, Any]) -> SeoTag:
    """Decode a head tag record using its ``type`` discriminator."""
    kind = raw.get("type")
    if kind == "head":
        attributes = tuple((str(key), str(value)) for key, value in raw.get("attributes") or [])
        return HeadTag(name=str(raw["name"]), attributes=attributes)
    if kind == "json-ld":
        return JsonLdTag(contents=raw["contents"])
    raise ProtocolViolation(f"Unknown head tag type: {kind!r}")


_DECODERS = {
    "Log": _decode_log,
    "InitialData": _decode_initial_data,
    "PageProgress": _decode_page_progress,
    "Errors": _decode_errors,
}
