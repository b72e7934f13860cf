"""
LLM-backed extraction of email insights and reply drafts.
"""
from __future__ import annotations

from inbox_agent.services.ai.draft_reply import extract_draft_reply
from inbox_agent.services.ai.insight import extract_email_insight
from inbox_agent.services.ai.model import get_chat_model

__all__ = ["extract_draft_reply", "extract_email_insight", "get_chat_model"]
