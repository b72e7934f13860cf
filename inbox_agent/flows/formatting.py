"""
Markdown rendering for the insight digest.
"""
from __future__ import annotations

import re
from collections import Counter

from inbox_agent.domain.email_insight import EmailInsight
from inbox_agent.domain.email_metadata import EmailMetadata

NO_UNREAD_NOTICE = "No unread emails found in your inbox.\n\n"
READING_LIST_HEADER = "### Reading List\n\n"

SECTION_TITLES = {
    "action_required": "Action Required",
    "fyi": "Updates",
    "noise": "Background",
}

_QUOTED_NAME_RE = re.compile(r'^"([^"]+)"\s*<')
_BARE_NAME_RE = re.compile(r"^([^<@]+?)\s*<")


def extract_sender_name(sender: str) -> str:
    """Display name from ``"Name" <addr>`` or ``Name <addr>``; the raw value otherwise."""
    sender = sender.strip()
    match = _QUOTED_NAME_RE.match(sender) or _BARE_NAME_RE.match(sender)
    if match and match.group(1).strip():
        return match.group(1).strip()
    return sender


def is_reading_list_item(insight: EmailInsight) -> bool:
    return insight.category == "newsletter_or_spam" and insight.urgency == "fyi"


def format_section_header(urgency: str) -> str:
    return f"## {SECTION_TITLES[urgency]}\n\n"


def format_insight_markdown(email: EmailMetadata, insight: EmailInsight) -> str:
    """Render one digest entry; the shape depends on urgency."""
    if insight.urgency == "action_required":
        entry = f"**{insight.summary}**\n"
        if insight.action:
            entry += f"-> {insight.action}\n"
        return entry + "\n---\n\n"

    if insight.urgency == "noise":
        return f"- {insight.summary} _({extract_sender_name(email.sender)})_\n"

    if is_reading_list_item(insight):
        return f"- **{email.subject}** ({extract_sender_name(email.sender)}) -- {insight.summary}\n"

    return (
        f"**From:** {extract_sender_name(email.sender)}\n"
        f"**Subject:** {email.subject}\n\n"
        f"{insight.summary}\n\n---\n\n"
    )


def format_digest_intro(insights: list[EmailInsight]) -> str:
    """One-line overview, e.g. "**2 need attention** · 1 update · 3 background"."""
    counts = Counter(insight.urgency for insight in insights)
    parts: list[str] = []

    action = counts["action_required"]
    if action:
        parts.append(f"**{action} {'needs' if action == 1 else 'need'} attention**")
    updates = counts["fyi"]
    if updates:
        parts.append(f"{updates} {'update' if updates == 1 else 'updates'}")
    background = counts["noise"]
    if background:
        parts.append(f"{background} background")

    if not parts:
        return ""
    return f"{len(insights)} unread analyzed: " + " · ".join(parts) + ".\n\n"
