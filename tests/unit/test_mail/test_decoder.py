#!/usr/bin/env python3
"""Tests for message body decoding."""

import pytest

from billtrack.mail.decoder import (
    MAX_PART_DEPTH,
    NO_BODY_FOUND,
    MessagePart,
    decode_body_data,
    extract_plain_text,
    find_part,
)
from tests.fixtures.fakes import encode_body


def nested_payload(depth: int, leaf: dict) -> dict:
    """Wrap ``leaf`` in ``depth`` multipart/mixed containers."""
    node = leaf
    for _ in range(depth):
        node = {"mimeType": "multipart/mixed", "parts": [node]}
    return node


@pytest.mark.unit
@pytest.mark.mail
class TestDecodeBodyData:
    """Test URL-safe base64 decoding."""

    def test_url_safe_alphabet_is_accepted(self):
        """Test that '-' and '_' decode like '+' and '/'."""
        encoded = encode_body("???>>>")
        assert "_" in encoded or "-" in encoded
        assert decode_body_data(encoded) == "???>>>"

    def test_missing_padding_is_restored(self):
        """Test that unpadded data decodes."""
        assert decode_body_data(encode_body("ab")) == "ab"

    def test_utf8_text_round_trips(self):
        """Test multibyte characters survive decoding."""
        assert decode_body_data(encode_body("Total: ₹1,234.50")) == "Total: ₹1,234.50"

    def test_invalid_data_raises_value_error(self):
        """Test that non-base64 input is reported as ValueError."""
        with pytest.raises(ValueError):
            decode_body_data("!!!not base64!!!")


@pytest.mark.unit
@pytest.mark.mail
class TestExtractPlainText:
    """Test selection of the textual body within a part tree."""

    def test_top_level_data_wins(self):
        """Test that inline data on the root is used even when parts exist."""
        payload = MessagePart.from_payload(
            {
                "mimeType": "text/plain",
                "body": {"data": encode_body("root body")},
                "parts": [{"mimeType": "text/plain", "body": {"data": encode_body("child body")}}],
            }
        )
        assert extract_plain_text(payload) == "root body"

    def test_plain_text_preferred_over_html(self):
        """Test that text/plain is chosen even when text/html comes first."""
        payload = MessagePart.from_payload(
            {
                "mimeType": "multipart/alternative",
                "parts": [
                    {"mimeType": "text/html", "body": {"data": encode_body("<p>html</p>")}},
                    {"mimeType": "text/plain", "body": {"data": encode_body("plain")}},
                ],
            }
        )
        assert extract_plain_text(payload) == "plain"

    def test_html_fallback_is_stripped(self):
        """Test that an HTML-only message is reduced to its text."""
        payload = MessagePart.from_payload(
            {
                "mimeType": "multipart/alternative",
                "parts": [
                    {"mimeType": "text/html", "body": {"data": encode_body("<p>Total: <b>$99.99</b></p>")}},
                ],
            }
        )
        text = extract_plain_text(payload)
        assert "<" not in text
        assert "Total:" in text
        assert "$99.99" in text

    def test_no_textual_part_returns_sentinel(self):
        """Test the sentinel for attachment-only messages."""
        payload = MessagePart.from_payload(
            {"mimeType": "multipart/mixed", "parts": [{"mimeType": "application/pdf", "body": {"data": "AAAA"}}]}
        )
        assert extract_plain_text(payload) == NO_BODY_FOUND

    def test_empty_payload_returns_sentinel(self):
        """Test the sentinel for a missing payload."""
        assert extract_plain_text(MessagePart.from_payload(None)) == NO_BODY_FOUND
        assert extract_plain_text(MessagePart.from_payload({})) == NO_BODY_FOUND

    def test_undecodable_body_returns_sentinel(self):
        """Test that bad base64 never raises."""
        payload = MessagePart.from_payload({"mimeType": "text/plain", "body": {"data": "!!!"}})
        assert extract_plain_text(payload) == NO_BODY_FOUND

    def test_nested_part_is_found(self):
        """Test depth-first search through several container levels."""
        leaf = {"mimeType": "text/plain", "body": {"data": encode_body("deep text")}}
        payload = MessagePart.from_payload(nested_payload(10, leaf))
        assert extract_plain_text(payload) == "deep text"

    def test_excessive_nesting_is_bounded(self):
        """Test that parts below the depth bound are ignored without error."""
        leaf = {"mimeType": "text/plain", "body": {"data": encode_body("too deep")}}
        payload = MessagePart.from_payload(nested_payload(MAX_PART_DEPTH * 4, leaf))
        assert extract_plain_text(payload) == NO_BODY_FOUND

    def test_self_referencing_parts_terminate(self):
        """Test that a payload listing itself among its parts is walked once."""
        node: dict = {"mimeType": "multipart/mixed"}
        node["parts"] = [node] * 64

        payload = MessagePart.from_payload(node)

        assert payload.parts == ()
        assert extract_plain_text(payload) == NO_BODY_FOUND

    def test_cyclic_parts_still_yield_text(self):
        """Test that a text part inside a reference cycle is still found."""
        outer: dict = {"mimeType": "multipart/mixed"}
        inner = {
            "mimeType": "multipart/alternative",
            "parts": [outer, {"mimeType": "text/plain", "body": {"data": encode_body("Total: 42")}}],
        }
        outer["parts"] = [inner, inner, outer]

        payload = MessagePart.from_payload(outer)

        assert extract_plain_text(payload) == "Total: 42"

    def test_find_part_skips_parts_without_data(self):
        """Test that empty text parts are passed over."""
        payload = MessagePart.from_payload(
            {
                "mimeType": "multipart/mixed",
                "parts": [
                    {"mimeType": "text/plain", "body": {"size": 0}},
                    {"mimeType": "text/plain", "body": {"data": encode_body("second")}},
                ],
            }
        )
        part = find_part(payload, "text/plain")
        assert part is not None
        assert decode_body_data(part.data) == "second"
