"""
Test configuration and fixtures.
"""
from __future__ import annotations

import base64
import json
import os
from typing import Any, AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set these before any app imports (settings are read on first use)
os.environ.setdefault("ENVIRONMENT", "dev")
os.environ.setdefault("CORS_ALLOW_ORIGINS", '["*"]')
os.environ.setdefault("LOG_FORMAT", "console")


def encode_body(text: str) -> str:
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii").rstrip("=")


def gmail_message(
    message_id: str,
    *,
    thread_id: str = "thread-1",
    subject: str = "Hello",
    sender: str = "Alice Example <alice@example.com>",
    date: str = "Fri, 16 Oct 2026 09:00:00 +0000",
    body: str = "Body text",
    snippet: str = "",
    extra_headers: dict[str, str] | None = None,
) -> dict[str, Any]:
    """A users.messages.get(format=full) response with a single text/plain part."""
    headers = [
        {"name": "Subject", "value": subject},
        {"name": "From", "value": sender},
        {"name": "Date", "value": date},
    ]
    for name, value in (extra_headers or {}).items():
        headers.append({"name": name, "value": value})
    return {
        "id": message_id,
        "threadId": thread_id,
        "snippet": snippet,
        "payload": {
            "mimeType": "multipart/alternative",
            "headers": headers,
            "parts": [
                {"mimeType": "text/plain", "body": {"data": encode_body(body)}},
            ],
        },
    }


class FakeMailbox:
    """In-memory EmailSource that records every call."""

    def __init__(
        self,
        messages: list[dict[str, Any]] | None = None,
        *,
        listed_ids: list[str | None] | None = None,
        threads: dict[str, dict[str, Any]] | None = None,
    ):
        self.messages = {message["id"]: message for message in messages or []}
        self.listed_ids = listed_ids if listed_ids is not None else list(self.messages)
        self.threads = threads or {}
        self.list_error: Exception | None = None
        self.message_errors: dict[str, Exception] = {}
        self.thread_error: Exception | None = None
        self.draft_error: Exception | None = None
        self.draft_response: dict[str, Any] = {"id": "draft-123"}
        self.list_calls: list[dict[str, Any]] = []
        self.created_drafts: list[dict[str, Any]] = []

    async def list_message_ids(self, query, *, label_ids=None, max_results=None):
        self.list_calls.append({"query": query, "label_ids": label_ids, "max_results": max_results})
        if self.list_error:
            raise self.list_error
        return list(self.listed_ids)

    async def get_message(self, message_id):
        if message_id in self.message_errors:
            raise self.message_errors[message_id]
        return self.messages[message_id]

    async def get_thread(self, thread_id):
        if self.thread_error:
            raise self.thread_error
        return self.threads[thread_id]

    async def create_draft(self, raw, thread_id):
        self.created_drafts.append({"raw": raw, "thread_id": thread_id})
        if self.draft_error:
            raise self.draft_error
        return self.draft_response


def parse_sse(text: str) -> list[dict[str, Any]]:
    """Decode every ``data:`` frame of an SSE body."""
    events = []
    for frame in text.split("\n\n"):
        frame = frame.strip()
        if frame.startswith("data: "):
            events.append(json.loads(frame[len("data: "):]))
    return events


@pytest.fixture
def make_message():
    return gmail_message


@pytest.fixture
def mailbox_cls():
    return FakeMailbox


@pytest.fixture
def sse_events():
    return parse_sse


@pytest.fixture
def app():
    """A fresh application; dependency overrides die with it."""
    from inbox_agent.api import create_app

    application = create_app()
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
