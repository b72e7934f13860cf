"""
Collaborators injected into the run flows.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from inbox_agent.domain.results import DraftReplyModelOutput
from inbox_agent.flows.insights import InsightExtractor
from inbox_agent.services.gmail.drafts import create_reply_draft
from inbox_agent.services.gmail.mailbox import EmailSource
from inbox_agent.services.gmail.reply_context import ReplyContext, fetch_reply_context

DraftReplyExtractor = Callable[..., Awaitable[DraftReplyModelOutput]]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class DigestDependencies:
    """Collaborators for the insight digest and narrative runs.

    Factories are resolved inside the run so configuration errors surface as
    RUN_ERROR events instead of failed HTTP requests.
    """

    mailbox_factory: Callable[[], EmailSource]
    model_factory: Callable[[], Any]
    extract_insight: InsightExtractor
    fetch_concurrency: int = 5
    max_results: int = 20
    lookback_hours: int = 48
    clock: Callable[[], datetime] = field(default=utc_now)


@dataclass
class DraftReplyDependencies:
    """Collaborators for the draft-reply run."""

    mailbox_factory: Callable[[], EmailSource]
    model_factory: Callable[[], Any]
    extract_draft_reply: DraftReplyExtractor
    fetch_reply_context: Callable[..., Awaitable[ReplyContext]] = field(default=fetch_reply_context)
    create_reply_draft: Callable[..., Awaitable[str]] = field(default=create_reply_draft)
    max_context_messages: int = 6
