"""
Gmail API message payload parsing.
"""
from __future__ import annotations

import base64
import binascii
import html
import re
from typing import Any

from inbox_agent.domain.email_metadata import NO_SUBJECT, EmailMetadata

_TAG_RE = re.compile(r"<[^>]+>")
_BLOCK_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1>", re.IGNORECASE | re.DOTALL)
_WHITESPACE_RE = re.compile(r"\s+")


def decode_base64url(data: str) -> str:
    """Decode a base64url string, repairing missing padding."""
    padded = data + "=" * (-len(data) % 4)
    try:
        return base64.urlsafe_b64decode(padded).decode("utf-8", errors="replace")
    except (binascii.Error, ValueError):
        return ""


def strip_html(value: str) -> str:
    """Reduce an HTML body to collapsed plain text."""
    text = _BLOCK_RE.sub(" ", value)
    text = _TAG_RE.sub(" ", text)
    return _WHITESPACE_RE.sub(" ", html.unescape(text)).strip()


def get_header(payload: dict[str, Any], name: str) -> str:
    """Case-insensitive header lookup; empty string when missing."""
    wanted = name.lower()
    for header in payload.get("headers") or []:
        if str(header.get("name", "")).lower() == wanted:
            return str(header.get("value") or "")
    return ""


def _find_part_data(payload: dict[str, Any], mime_type: str) -> str | None:
    if payload.get("mimeType") == mime_type:
        data = (payload.get("body") or {}).get("data")
        if data:
            return data
    for part in payload.get("parts") or []:
        data = _find_part_data(part, mime_type)
        if data:
            return data
    return None


def extract_body_text(payload: dict[str, Any]) -> str:
    """Prefer text/plain, then text/html with tags stripped, then the top-level body."""
    plain = _find_part_data(payload, "text/plain")
    if plain:
        return decode_base64url(plain).strip()

    markup = _find_part_data(payload, "text/html")
    if markup:
        return strip_html(decode_base64url(markup))

    data = (payload.get("body") or {}).get("data")
    if data:
        return decode_base64url(data).strip()
    return ""


def parse_gmail_message(message: dict[str, Any]) -> EmailMetadata:
    """Convert a users.messages.get(format=full) response into EmailMetadata."""
    payload = message.get("payload") or {}
    return EmailMetadata(
        id=str(message.get("id") or ""),
        thread_id=str(message.get("threadId") or ""),
        subject=get_header(payload, "Subject") or NO_SUBJECT,
        sender=get_header(payload, "From"),
        reply_to=get_header(payload, "Reply-To"),
        to=get_header(payload, "To"),
        date=get_header(payload, "Date"),
        snippet=html.unescape(str(message.get("snippet") or "")),
        body_text=extract_body_text(payload),
        message_id_header=get_header(payload, "Message-ID") or None,
        references=get_header(payload, "References") or None,
    )
