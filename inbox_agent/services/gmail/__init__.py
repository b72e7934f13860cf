"""
Gmail access: client construction, message parsing, bounded fetch, reply context and drafts.
"""
from __future__ import annotations

from inbox_agent.services.gmail.client import (
    GmailCredentials,
    clear_gmail_service_cache,
    get_gmail_service,
)
from inbox_agent.services.gmail.drafts import build_reply_message, create_reply_draft
from inbox_agent.services.gmail.fetch import (
    INBOX_LABEL,
    UNREAD_QUERY,
    fetch_details_bounded,
    fetch_unread_emails,
)
from inbox_agent.services.gmail.mailbox import EmailSource, GmailMailbox
from inbox_agent.services.gmail.parse import parse_gmail_message
from inbox_agent.services.gmail.reply_context import ReplyContext, fetch_reply_context

__all__ = [
    "INBOX_LABEL",
    "UNREAD_QUERY",
    "EmailSource",
    "GmailCredentials",
    "GmailMailbox",
    "ReplyContext",
    "build_reply_message",
    "clear_gmail_service_cache",
    "create_reply_draft",
    "fetch_details_bounded",
    "fetch_reply_context",
    "fetch_unread_emails",
    "get_gmail_service",
    "parse_gmail_message",
]
