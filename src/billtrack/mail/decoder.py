#!/usr/bin/env python3
"""
Message Body Decoder

Locates and decodes the textual payload of a (possibly multipart) message
part tree as delivered by the Gmail API.

Part bodies are URL-safe base64. Traversal is an explicit depth-first
worklist bounded by MAX_PART_DEPTH, so malformed or cyclic trees cannot
exhaust the stack. Decoding never raises: when no usable body exists the
NO_BODY_FOUND sentinel is returned, which matches no extraction pattern.
"""

import base64
import binascii
import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

NO_BODY_FOUND = "[No body found]"
MAX_PART_DEPTH = 32

TEXT_PLAIN = "text/plain"
TEXT_HTML = "text/html"


@dataclass(frozen=True)
class MessagePart:
    """One node of a message part tree."""

    mime_type: str = ""
    data: str | None = None
    parts: tuple["MessagePart", ...] = field(default_factory=tuple)

    @classmethod
    def from_payload(cls, payload: dict[str, Any] | None) -> "MessagePart":
        """
        Build a part tree from a Gmail ``payload`` dictionary.

        Nesting deeper than MAX_PART_DEPTH is cut off rather than followed,
        and a part dictionary reachable more than once is expanded only once.
        """
        if not payload:
            return cls()

        root: dict[str, Any] = payload
        # (source dict, depth) pairs in post-order; children are assembled first
        order: list[tuple[dict[str, Any], int]] = []
        stack: list[tuple[dict[str, Any], int, bool]] = [(root, 0, False)]
        visited: set[int] = set()
        while stack:
            node, depth, expanded = stack.pop()
            if expanded:
                order.append((node, depth))
                continue
            if id(node) in visited:
                continue
            visited.add(id(node))
            stack.append((node, depth, True))
            if depth >= MAX_PART_DEPTH:
                continue
            for child in reversed(list(node.get("parts") or [])):
                if isinstance(child, dict):
                    stack.append((child, depth + 1, False))

        built: dict[int, MessagePart] = {}
        for node, depth in order:
            children: tuple[MessagePart, ...] = ()
            if depth < MAX_PART_DEPTH:
                children = tuple(
                    built[id(child)] for child in node.get("parts") or [] if id(child) in built
                )
            body = node.get("body") or {}
            built[id(node)] = cls(
                mime_type=node.get("mimeType", ""),
                data=body.get("data"),
                parts=children,
            )
        return built[id(root)]


def iter_parts(root: MessagePart, max_depth: int = MAX_PART_DEPTH) -> Iterator[MessagePart]:
    """
    Yield the descendants of ``root`` in depth-first pre-order.

    The root itself is not yielded. Parts already visited are skipped and
    nothing below ``max_depth`` is visited.
    """
    stack = [(child, 1) for child in reversed(root.parts)]
    seen: set[int] = set()
    while stack:
        part, depth = stack.pop()
        if id(part) in seen:
            continue
        seen.add(id(part))
        yield part
        if depth < max_depth:
            stack.extend((child, depth + 1) for child in reversed(part.parts))


def find_part(root: MessagePart, mime_type: str) -> MessagePart | None:
    """Return the first descendant of ``mime_type`` carrying inline data."""
    for part in iter_parts(root):
        if part.mime_type == mime_type and part.data:
            return part
    return None


def decode_body_data(data: str) -> str:
    """
    Decode URL-safe base64 body data to text.

    Raises:
        ValueError: If the data is not valid base64
    """
    normalized = data.replace("-", "+").replace("_", "/")
    normalized += "=" * (-len(normalized) % 4)
    try:
        raw = base64.b64decode(normalized, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid body encoding: {e}") from e
    return raw.decode("utf-8", errors="replace")


def html_to_text(html: str) -> str:
    """Strip markup so labels and values are adjacent plain text."""
    return BeautifulSoup(html, "html.parser").get_text(separator=" ")


def extract_plain_text(payload: MessagePart) -> str:
    """
    Return the best-effort plain text of a message.

    Inline data on the top-level part wins. Otherwise the first text/plain
    descendant is used, falling back to the first text/html descendant.
    """
    if payload.data:
        chosen: MessagePart | None = payload
    else:
        chosen = find_part(payload, TEXT_PLAIN) or find_part(payload, TEXT_HTML)

    if chosen is None or not chosen.data:
        return NO_BODY_FOUND

    try:
        text = decode_body_data(chosen.data)
    except ValueError as e:
        logger.debug(f"Undecodable {chosen.mime_type or 'body'} part: {e}")
        return NO_BODY_FOUND

    if chosen.mime_type == TEXT_HTML:
        return html_to_text(text)
    return text
