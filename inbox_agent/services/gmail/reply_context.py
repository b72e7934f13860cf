"""
Thread context retrieval for draft replies.
"""
from __future__ import annotations

from dataclasses import dataclass

import structlog

from inbox_agent.domain.email_metadata import EmailMetadata
from inbox_agent.errors import ErrorCode
from inbox_agent.services.gmail.mailbox import EmailSource
from inbox_agent.services.gmail.parse import parse_gmail_message

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ReplyContext:
    """Target message plus the bounded thread window the model sees."""

    target: EmailMetadata
    messages: list[EmailMetadata]
    degraded: bool
    in_reply_to: str | None
    references: str | None


def build_reply_headers(target: EmailMetadata) -> tuple[str | None, str | None]:
    """In-Reply-To and References for a reply to ``target``."""
    message_id = target.message_id_header
    if not message_id:
        return None, target.references
    if target.references:
        chain = target.references.split()
        if message_id not in chain:
            chain.append(message_id)
        return message_id, " ".join(chain)
    return message_id, message_id


def bound_context(messages: list[EmailMetadata], target_id: str, max_messages: int) -> list[EmailMetadata]:
    """Keep the most recent ``max_messages`` while guaranteeing the target stays in."""
    if len(messages) <= max_messages:
        return messages
    window = messages[-max_messages:]
    if any(message.id == target_id for message in window):
        return window
    target_index = next(i for i, message in enumerate(messages) if message.id == target_id)
    others = [i for i in range(len(messages)) if i != target_index][-(max_messages - 1):]
    keep = sorted([target_index, *others])
    return [messages[i] for i in keep]


def _dedupe_thread(raw_messages: list[dict], target: EmailMetadata) -> list[EmailMetadata]:
    seen: set[str] = set()
    messages: list[EmailMetadata] = []
    for raw in raw_messages:
        message_id = raw.get("id")
        if not message_id or message_id in seen:
            continue
        seen.add(message_id)
        messages.append(target if message_id == target.id else parse_gmail_message(raw))
    if target.id not in seen:
        messages.append(target)
    return messages


async def fetch_reply_context(
    mailbox: EmailSource,
    email_id: str,
    *,
    max_messages: int = 6,
) -> ReplyContext:
    """Fetch the target message and as much of its thread as is available.

    A failing or missing thread degrades to a single-message context instead
    of failing; a failing target fetch propagates.
    """
    target = parse_gmail_message(await mailbox.get_message(email_id))
    in_reply_to, references = build_reply_headers(target)

    if not target.thread_id:
        logger.warning(
            "gmail.thread_missing",
            code=ErrorCode.CONTEXT_DEGRADED.value,
            email_id=target.id,
        )
        return ReplyContext(target, [target], True, in_reply_to, references)

    try:
        thread = await mailbox.get_thread(target.thread_id)
        messages = _dedupe_thread(thread.get("messages") or [], target)
    except Exception as e:
        logger.warning(
            "gmail.thread_fetch_failed",
            code=ErrorCode.CONTEXT_DEGRADED.value,
            email_id=target.id,
            thread_id=target.thread_id,
            error=str(e),
            error_type=type(e).__name__,
        )
        return ReplyContext(target, [target], True, in_reply_to, references)

    return ReplyContext(
        target=target,
        messages=bound_context(messages, target.id, max_messages),
        degraded=False,
        in_reply_to=in_reply_to,
        references=references,
    )
