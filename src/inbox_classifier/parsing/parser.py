from __future__ import annotations

import base64
from typing import Any, Dict, List, Optional

from inbox_classifier.models import Message


def decode_base64url(data: str) -> str:
    """Decode a Gmail base64url body into text. Missing padding is tolerated."""
    padded = data + "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8", errors="replace")


def header_value(headers: List[Dict[str, str]], name: str) -> str:
    # Case-sensitive, first match wins.
    for header in headers:
        if header.get("name") == name:
            return header.get("value") or ""
    return ""


def extract_body_from_payload(payload: dict) -> str:
    """
    Extract the plain text body from a Gmail message payload.

    Only the MIME parts are scanned; the first text/plain part carrying data
    wins. HTML-only messages and messages without parts yield "".
    """
    def find_part(parts: List[dict]) -> Optional[str]:
        # Depth-first search through multipart payloads.
        for part in parts:
            data = (part.get("body") or {}).get("data")
            if part.get("mimeType") == "text/plain" and data:
                return decode_base64url(data)
            found = find_part(part.get("parts") or [])
            if found is not None:
                return found
        return None

    text = find_part(payload.get("parts") or [])
    return text if text is not None else ""


def message_from_resource(resource: Dict[str, Any]) -> Message:
    """Build a Message from a users.messages.get(format="full") resource."""
    payload = resource.get("payload") or {}
    headers = payload.get("headers") or []

    return Message(
        id=resource["id"],
        subject=header_value(headers, "Subject"),
        sender=header_value(headers, "From"),
        snippet=resource.get("snippet") or "",
        body=extract_body_from_payload(payload),
        date=header_value(headers, "Date"),
    )
