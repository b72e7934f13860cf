"""
Reply draft creation.
"""
from __future__ import annotations

import base64
from email import policy
from email.message import EmailMessage

import structlog

from inbox_agent.domain.email_metadata import NO_SUBJECT
from inbox_agent.errors import DraftCreationError
from inbox_agent.services.gmail.mailbox import EmailSource

logger = structlog.get_logger(__name__)


def reply_subject(subject: str) -> str:
    """Prefix "Re: " unless the subject already carries it."""
    subject = subject.strip() or NO_SUBJECT
    if subject.lower().startswith("re:"):
        return subject
    return f"Re: {subject}"


def build_reply_message(
    *,
    to: str,
    subject: str,
    body: str,
    in_reply_to: str | None = None,
    references: str | None = None,
) -> str:
    """RFC 5322 text/plain reply, base64url-encoded without padding."""
    message = EmailMessage(policy=policy.SMTP)
    message["To"] = to
    message["Subject"] = reply_subject(subject)
    if in_reply_to:
        message["In-Reply-To"] = in_reply_to
    if references:
        message["References"] = references
    message.set_content(body, charset="utf-8", cte="8bit")
    return base64.urlsafe_b64encode(message.as_bytes()).decode("ascii").rstrip("=")


async def create_reply_draft(
    mailbox: EmailSource,
    *,
    thread_id: str,
    to: str,
    subject: str,
    body: str,
    in_reply_to: str | None = None,
    references: str | None = None,
) -> str:
    """Create a Gmail draft in ``thread_id`` and return its id."""
    if not thread_id.strip():
        raise DraftCreationError("Cannot create a reply draft without a thread id")
    if not to.strip():
        raise DraftCreationError("Cannot create a reply draft without a recipient")

    raw = build_reply_message(
        to=to,
        subject=subject,
        body=body,
        in_reply_to=in_reply_to,
        references=references,
    )
    response = await mailbox.create_draft(raw, thread_id)
    draft_id = (response or {}).get("id")
    if not draft_id:
        raise DraftCreationError("Gmail did not return a draft id")

    logger.info("gmail.draft_created", thread_id=thread_id, draft_id=draft_id)
    return str(draft_id)
