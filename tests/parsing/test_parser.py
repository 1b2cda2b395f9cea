from __future__ import annotations

import base64

from inbox_classifier.parsing.parser import (
    extract_body_from_payload,
    header_value,
    message_from_resource,
)


def _b64url(text: str) -> str:
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii")


def test_extract_body_picks_plain_text_part_after_html() -> None:
    payload = {
        "mimeType": "multipart/alternative",
        "parts": [
            {"mimeType": "text/html", "body": {"data": _b64url("<p>hello</p>")}},
            {"mimeType": "text/plain", "body": {"data": _b64url("hello world")}},
        ],
    }

    assert extract_body_from_payload(payload) == "hello world"


def test_extract_body_without_plain_text_part_is_empty() -> None:
    payload = {
        "mimeType": "multipart/alternative",
        "parts": [{"mimeType": "text/html", "body": {"data": _b64url("<p>hello</p>")}}],
    }

    assert extract_body_from_payload(payload) == ""


def test_extract_body_without_parts_is_empty() -> None:
    # Single-part messages are classified from their snippet instead.
    payload = {"mimeType": "text/plain", "body": {"data": _b64url("top level")}}

    assert extract_body_from_payload(payload) == ""


def test_extract_body_skips_plain_part_without_data() -> None:
    payload = {
        "parts": [
            {"mimeType": "text/plain", "body": {"size": 0}},
            {"mimeType": "text/plain", "body": {"data": _b64url("second")}},
        ],
    }

    assert extract_body_from_payload(payload) == "second"


def test_extract_body_searches_nested_multipart() -> None:
    payload = {
        "mimeType": "multipart/mixed",
        "parts": [
            {
                "mimeType": "multipart/alternative",
                "body": {"size": 0},
                "parts": [
                    {"mimeType": "text/plain", "body": {"data": _b64url("nested text")}},
                ],
            },
            {"mimeType": "application/pdf", "body": {"attachmentId": "a1"}},
        ],
    }

    assert extract_body_from_payload(payload) == "nested text"


def test_extract_body_decodes_unpadded_utf8() -> None:
    data = _b64url("Grüße aus Köln").rstrip("=")
    payload = {"parts": [{"mimeType": "text/plain", "body": {"data": data}}]}

    assert extract_body_from_payload(payload) == "Grüße aus Köln"


def test_header_value_is_case_sensitive_and_first_match_wins() -> None:
    headers = [
        {"name": "subject", "value": "lowercase"},
        {"name": "Subject", "value": "first"},
        {"name": "Subject", "value": "second"},
    ]

    assert header_value(headers, "Subject") == "first"
    assert header_value(headers, "From") == ""


def test_message_from_resource_maps_fields() -> None:
    resource = {
        "id": "m1",
        "snippet": "Preview text",
        "payload": {
            "headers": [
                {"name": "From", "value": "Alice <alice@example.com>"},
                {"name": "Subject", "value": "Lunch?"},
                {"name": "Date", "value": "Mon, 19 Oct 2026 10:00:00 +0000"},
            ],
            "parts": [{"mimeType": "text/plain", "body": {"data": _b64url("Noon works")}}],
        },
    }

    message = message_from_resource(resource)

    assert message.id == "m1"
    assert message.sender == "Alice <alice@example.com>"
    assert message.subject == "Lunch?"
    assert message.date == "Mon, 19 Oct 2026 10:00:00 +0000"
    assert message.snippet == "Preview text"
    assert message.body == "Noon works"
    assert message.content == "Noon works"


def test_message_content_falls_back_to_snippet() -> None:
    message = message_from_resource({"id": "m2", "snippet": "Only a preview", "payload": {}})

    assert message.body == ""
    assert message.subject == ""
    assert message.content == "Only a preview"
