"""
Tests for the body resolver: base64 decoding and payload tree flattening
"""

import base64

import pytest

from expense_engine.modules.body_resolver import BodyResolver, decode_body_data
from expense_engine.modules.raw_message import MessagePart

from conftest import build_part, encode_body


def _part(mime_type, text=None, parts=()):
    data = encode_body(text) if text is not None else None
    return MessagePart(mime_type=mime_type, body_data=data, parts=tuple(parts))


class TestDecodeBodyData:
    def test_url_safe_alphabet_is_mapped_back(self):
        text = "~~~???"
        standard = base64.b64encode(text.encode()).decode()
        assert "+" in standard and "/" in standard

        url_safe = base64.urlsafe_b64encode(text.encode()).decode()
        assert decode_body_data(url_safe) == text

    def test_missing_padding_is_restored(self):
        assert decode_body_data("YWI") == "ab"
        assert decode_body_data("YWI=") == "ab"

    def test_embedded_whitespace_is_ignored(self):
        assert decode_body_data("aGVs\nbG8g\r\nd29y bGQ") == "hello world"

    def test_invalid_data_returns_empty(self):
        assert decode_body_data("A") == ""

    @pytest.mark.parametrize("value", ["", None])
    def test_empty_input(self, value):
        assert decode_body_data(value) == ""

    def test_non_utf8_bytes_are_replaced(self):
        data = base64.urlsafe_b64encode(b"Rs \xff 100").decode().rstrip("=")
        assert decode_body_data(data) == "Rs \ufffd 100"


class TestBodyResolver:
    def setup_method(self):
        self.resolver = BodyResolver()

    def test_root_inline_body_wins(self):
        payload = _part(
            "text/plain", "root text",
            parts=[_part("text/plain", "child text")],
        )
        assert self.resolver.resolve(payload) == "root text"

    def test_blank_root_falls_through_to_children(self):
        payload = _part("text/plain", "   \n", parts=[_part("text/plain", "child")])
        assert self.resolver.resolve(payload) == "child"

    def test_undecodable_root_falls_through_to_children(self):
        payload = MessagePart(
            mime_type="text/plain", body_data="A",
            parts=(_part("text/plain", "child"),),
        )
        assert self.resolver.resolve(payload) == "child"

    def test_alternative_parts_joined_in_document_order(self):
        payload = _part("multipart/alternative", parts=[
            _part("text/plain", "first"),
            _part("text/html", "<b>second</b>"),
        ])
        assert self.resolver.resolve(payload) == "first\n<b>second</b>"

    def test_nested_multipart_is_flattened(self):
        payload = _part("multipart/mixed", parts=[
            _part("multipart/alternative", parts=[_part("text/plain", "inner")]),
            _part("text/plain", "outer"),
        ])
        assert self.resolver.resolve(payload) == "inner\nouter"

    def test_attachments_are_skipped(self):
        payload = _part("multipart/mixed", parts=[
            _part("application/pdf", "%PDF-1.4 binary"),
            _part("text/plain", "statement attached"),
        ])
        assert self.resolver.resolve(payload) == "statement attached"

    def test_other_textual_types_are_included(self):
        payload = _part("multipart/mixed", parts=[
            _part("text/calendar", "BEGIN:VCALENDAR"),
        ])
        assert self.resolver.resolve(payload) == "BEGIN:VCALENDAR"

    def test_malformed_sibling_does_not_block_others(self):
        payload = MessagePart(mime_type="multipart/alternative", parts=(
            MessagePart(mime_type="text/plain", body_data="A"),
            _part("text/html", "<p>good</p>"),
        ))
        assert self.resolver.resolve(payload) == "<p>good</p>"

    def test_empty_payload_resolves_to_empty(self):
        assert self.resolver.resolve(MessagePart()) == ""

    def test_depth_guard_stops_traversal(self):
        deep = _part("multipart/mixed", parts=[
            _part("multipart/mixed", parts=[
                _part("multipart/mixed", parts=[_part("text/plain", "deep text")]),
            ]),
        ])
        assert BodyResolver(max_depth=2).resolve(deep) == ""
        assert BodyResolver(max_depth=3).resolve(deep) == "deep text"

    def test_resolves_payload_built_from_gmail_dict(self):
        payload = MessagePart.from_dict(
            build_part("multipart/alternative", parts=[
                build_part("text/plain", "Rs. 500 debited"),
                build_part("text/html", "<td>Location</td><td>PUNE</td>"),
            ])
        )
        text = self.resolver.resolve(payload)
        assert "Rs. 500 debited" in text
        assert "<td>PUNE</td>" in text
