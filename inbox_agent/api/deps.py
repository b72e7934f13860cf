"""
FastAPI dependency providers for the run endpoints.

Tests replace these through ``app.dependency_overrides``.
"""
from __future__ import annotations

from inbox_agent.config import get_settings
from inbox_agent.flows.dependencies import DigestDependencies, DraftReplyDependencies
from inbox_agent.services.ai.draft_reply import extract_draft_reply
from inbox_agent.services.ai.insight import extract_email_insight
from inbox_agent.services.ai.model import get_chat_model
from inbox_agent.services.gmail.client import GmailCredentials, get_gmail_service
from inbox_agent.services.gmail.mailbox import GmailMailbox


def create_mailbox() -> GmailMailbox:
    """Mailbox for the configured account; raises ValueError when credentials are missing."""
    credentials = GmailCredentials.from_settings(get_settings())
    return GmailMailbox(get_gmail_service(credentials))


def get_digest_dependencies() -> DigestDependencies:
    """Collaborators for POST /agent and POST /narrative."""
    settings = get_settings()
    return DigestDependencies(
        mailbox_factory=create_mailbox,
        model_factory=get_chat_model,
        extract_insight=extract_email_insight,
        fetch_concurrency=settings.GMAIL_FETCH_CONCURRENCY,
        max_results=settings.GMAIL_MAX_RESULTS,
        lookback_hours=settings.NARRATIVE_LOOKBACK_HOURS,
    )


def get_draft_reply_dependencies() -> DraftReplyDependencies:
    """Collaborators for POST /draft-reply."""
    settings = get_settings()
    return DraftReplyDependencies(
        mailbox_factory=create_mailbox,
        model_factory=get_chat_model,
        extract_draft_reply=extract_draft_reply,
        max_context_messages=settings.GMAIL_MAX_CONTEXT_MESSAGES,
    )
