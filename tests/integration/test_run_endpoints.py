"""
Integration tests for the SSE run endpoints.
"""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from structlog.testing import capture_logs

from inbox_agent.api.deps import get_digest_dependencies, get_draft_reply_dependencies
from inbox_agent.api.streaming.response import _active_runs
from inbox_agent.domain.email_insight import EmailInsight
from inbox_agent.domain.results import DraftReplyModelOutput
from inbox_agent.flows.dependencies import DigestDependencies, DraftReplyDependencies

NOW = datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc)


def _insight(model, email) -> EmailInsight:
    return EmailInsight(summary=f"Summary of {email.subject}", category="personal", urgency="fyi")


@pytest.fixture
def digest_mailbox(app, mailbox_cls, make_message):
    """Route /agent and /narrative to an in-memory mailbox."""
    mailbox = mailbox_cls([
        make_message("m1", subject="Dinner"),
        make_message("m2", subject="Trip"),
    ])
    app.dependency_overrides[get_digest_dependencies] = lambda: DigestDependencies(
        mailbox_factory=lambda: mailbox,
        model_factory=object,
        extract_insight=AsyncMock(side_effect=_insight),
        clock=lambda: NOW,
    )
    return mailbox


@pytest.fixture
def draft_mailbox(app, mailbox_cls, make_message):
    """Route /draft-reply to an in-memory mailbox and a canned draft."""
    mailbox = mailbox_cls(
        [make_message("m1", thread_id="t1", subject="Question")],
        threads={"t1": {"messages": [make_message("m1", thread_id="t1")]}},
    )
    app.dependency_overrides[get_draft_reply_dependencies] = lambda: DraftReplyDependencies(
        mailbox_factory=lambda: mailbox,
        model_factory=object,
        extract_draft_reply=AsyncMock(return_value=DraftReplyModelOutput(draft_text="Sure, see you then.")),
    )
    return mailbox


def _types(events: list[dict]) -> list[str]:
    return [event["type"] for event in events]


@pytest.mark.asyncio
async def test_agent_streams_digest(client, digest_mailbox, sse_events):
    """POST /agent streams a framed digest and echoes the caller's ids."""
    response = await client.post("/agent", json={"runId": "r-1", "threadId": "t-1"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    assert response.headers["cache-control"] == "no-cache"
    assert response.headers["x-accel-buffering"] == "no"

    events = sse_events(response.text)
    assert _types(events)[0] == "RUN_STARTED"
    assert events[0]["runId"] == "r-1"
    assert events[0]["threadId"] == "t-1"
    assert events[0]["input"] == {"runId": "r-1", "threadId": "t-1"}
    assert _types(events)[-2:] == ["TEXT_MESSAGE_END", "RUN_FINISHED"]
    assert events[-1]["runId"] == "r-1"
    content = "".join(event["delta"] for event in events if event["type"] == "TEXT_MESSAGE_CONTENT")
    assert "Summary of Dinner" in content
    assert "Summary of Trip" in content


@pytest.mark.asyncio
async def test_agent_accepts_missing_body(client, digest_mailbox, sse_events):
    """An empty body still runs with generated ids."""
    response = await client.post("/agent")

    events = sse_events(response.text)
    assert events[0]["runId"].startswith("run-")
    assert events[0]["threadId"].startswith("thread-")
    assert events[-1]["type"] == "RUN_FINISHED"


@pytest.mark.asyncio
async def test_agent_reports_fetch_failure(client, digest_mailbox, sse_events):
    """A Gmail outage becomes one RUN_ERROR, still inside a 200 stream."""
    digest_mailbox.list_error = ConnectionError("down")

    response = await client.post("/agent", json={})

    assert response.status_code == 200
    events = sse_events(response.text)
    assert _types(events).count("RUN_ERROR") == 1
    assert "RUN_FINISHED" not in _types(events)
    assert events[-1]["code"] == "gmail_fetch_failed"


@pytest.mark.asyncio
async def test_narrative_result(client, digest_mailbox, sse_events):
    """POST /narrative finishes with the structured result."""
    response = await client.post("/narrative", json={"runId": "r-2"})

    events = sse_events(response.text)
    assert events[0]["runId"] == "r-2"
    assert "input" not in events[0]
    result = events[-1]["result"]
    assert result["unreadCount"] == 2
    assert result["analyzedCount"] == 2
    assert result["timeframeHours"] == 48
    assert result["narrative"].startswith("## Briefing")


@pytest.mark.asyncio
async def test_narrative_ignores_invalid_body(client, digest_mailbox, sse_events):
    """Invalid bodies fall back to default ids."""
    response = await client.post("/narrative", content=b"not json", headers={"content-type": "application/json"})

    events = sse_events(response.text)
    assert events[0]["runId"].startswith("run-")
    assert events[-1]["type"] == "RUN_FINISHED"


@pytest.mark.asyncio
async def test_draft_reply_saves_draft(client, draft_mailbox, sse_events):
    """POST /draft-reply streams the draft and reports the Gmail draft id."""
    response = await client.post("/draft-reply", json={"emailId": "m1", "runId": "r-3", "threadId": "t-3"})

    events = sse_events(response.text)
    assert _types(events) == [
        "RUN_STARTED",
        "TEXT_MESSAGE_START",
        "TEXT_MESSAGE_CONTENT",
        "TEXT_MESSAGE_END",
        "RUN_FINISHED",
    ]
    assert events[-1]["runId"] == "r-3"
    assert events[-1]["result"]["gmailDraftId"] == "draft-123"
    assert events[-1]["result"]["emailId"] == "m1"
    assert len(draft_mailbox.created_drafts) == 1


@pytest.mark.asyncio
async def test_draft_reply_invalid_json(client, draft_mailbox, sse_events):
    """Malformed JSON is invalid_request with no text and no Gmail calls."""
    response = await client.post("/draft-reply", content=b"{", headers={"content-type": "application/json"})

    assert response.status_code == 200
    events = sse_events(response.text)
    assert _types(events) == ["RUN_STARTED", "RUN_ERROR"]
    assert events[-1]["code"] == "invalid_request"
    assert "valid JSON" in events[-1]["message"]
    assert draft_mailbox.created_drafts == []


@pytest.mark.asyncio
async def test_draft_reply_unknown_field(client, draft_mailbox, sse_events):
    """Unknown fields are rejected, but the caller's ids are still echoed."""
    response = await client.post("/draft-reply", json={"emailId": "m1", "runId": "r-4", "tone": "warm"})

    events = sse_events(response.text)
    assert events[0]["runId"] == "r-4"
    assert events[-1]["code"] == "invalid_request"
    assert "tone" in events[-1]["message"]


@pytest.mark.asyncio
async def test_draft_reply_save_failure(client, draft_mailbox, sse_events):
    """A Gmail save failure is draft_save_failed."""
    draft_mailbox.draft_error = ConnectionError("500")

    response = await client.post("/draft-reply", json={"emailId": "m1"})

    events = sse_events(response.text)
    assert events[-1]["type"] == "RUN_ERROR"
    assert events[-1]["code"] == "draft_save_failed"


async def _post_then_disconnect(app, path: str, body: bytes, hang_up: asyncio.Event) -> list[dict]:
    """Drive the app over raw ASGI; the client goes away once ``hang_up`` is set.

    spec_version 2.3 makes the streaming response listen for http.disconnect,
    the way uvicorn serves it.
    """
    scope = {
        "type": "http",
        "asgi": {"version": "3.0", "spec_version": "2.3"},
        "http_version": "1.1",
        "method": "POST",
        "scheme": "http",
        "path": path,
        "raw_path": path.encode(),
        "root_path": "",
        "query_string": b"",
        "headers": [(b"host", b"test"), (b"content-type", b"application/json")],
        "client": ("test", 1234),
        "server": ("test", 80),
    }
    pending = [{"type": "http.request", "body": body, "more_body": False}]
    sent: list[dict] = []

    async def receive():
        if pending:
            return pending.pop(0)
        await hang_up.wait()
        return {"type": "http.disconnect"}

    async def send(message):
        sent.append(message)

    await app(scope, receive, send)
    return sent


async def _wait_for_runs() -> None:
    loop = asyncio.get_running_loop()
    runs = [task for task in _active_runs if task.get_loop() is loop]
    await asyncio.wait_for(asyncio.gather(*runs), timeout=2)


@pytest.mark.asyncio
async def test_draft_reply_disconnect_during_generation_skips_save(app, draft_mailbox):
    """A client that leaves while the model is writing never gets a Gmail draft."""
    generating = asyncio.Event()
    release = asyncio.Event()

    async def slow_draft(*args, **kwargs):
        generating.set()
        await release.wait()
        return DraftReplyModelOutput(draft_text="Sure, see you then.")

    app.dependency_overrides[get_draft_reply_dependencies] = lambda: DraftReplyDependencies(
        mailbox_factory=lambda: draft_mailbox,
        model_factory=object,
        extract_draft_reply=slow_draft,
    )

    with capture_logs() as logs:
        sent = await _post_then_disconnect(app, "/draft-reply", b'{"emailId": "m1"}', generating)
        release.set()
        await _wait_for_runs()

    assert sent[0]["status"] == 200
    assert draft_mailbox.created_drafts == []
    disconnected = [entry for entry in logs if entry["event"] == "stream.client_disconnected"]
    assert [entry["route"] for entry in disconnected] == ["draft_reply"]
    failed = [entry for entry in logs if entry["event"] == "draft_reply.run_failed"]
    assert len(failed) == 1
    assert failed[0]["code"] == "request_aborted"
    assert failed[0]["aborted"] is True


@pytest.mark.asyncio
async def test_agent_disconnect_stops_analysis(app, digest_mailbox):
    """A digest whose client left stops before the next email and logs an aborted run."""
    analyzing = asyncio.Event()
    release = asyncio.Event()
    analyzed: list[str] = []

    async def slow_insight(model, email):
        analyzed.append(email.id)
        analyzing.set()
        await release.wait()
        return _insight(model, email)

    app.dependency_overrides[get_digest_dependencies] = lambda: DigestDependencies(
        mailbox_factory=lambda: digest_mailbox,
        model_factory=object,
        extract_insight=slow_insight,
        clock=lambda: NOW,
    )

    with capture_logs() as logs:
        await _post_then_disconnect(app, "/agent", b"{}", analyzing)
        release.set()
        await _wait_for_runs()

    assert analyzed == ["m1"]
    assert any(entry["event"] == "stream.client_disconnected" for entry in logs)
    aborted = [entry for entry in logs if entry["event"] == "agent.run_aborted"]
    assert len(aborted) == 1
    assert aborted[0]["aborted"] is True
    assert not any(entry["event"] == "agent.run_completed" for entry in logs)
