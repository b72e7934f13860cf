"""
Domain models shared by the Gmail services, AI extractors and run flows.
"""
from __future__ import annotations

from inbox_agent.domain.email_insight import (
    CATEGORY_ORDER,
    URGENCY_ORDER,
    EmailCategory,
    EmailInsight,
    EmailUrgency,
)
from inbox_agent.domain.email_metadata import EmailMetadata
from inbox_agent.domain.requests import DraftReplyRequest, NarrativeRequest, RunContext
from inbox_agent.domain.results import (
    DRAFT_REPLY_RISK_FLAGS,
    DraftReplyModelOutput,
    DraftReplyResult,
    NarrativeRunResult,
)

__all__ = [
    "CATEGORY_ORDER",
    "DRAFT_REPLY_RISK_FLAGS",
    "URGENCY_ORDER",
    "DraftReplyModelOutput",
    "DraftReplyRequest",
    "DraftReplyResult",
    "EmailCategory",
    "EmailInsight",
    "EmailMetadata",
    "EmailUrgency",
    "NarrativeRequest",
    "NarrativeRunResult",
    "RunContext",
]
