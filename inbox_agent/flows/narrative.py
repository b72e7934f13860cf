"""
Narrative briefing run (POST /narrative).

Analyzes unread mail from the lookback window and streams a short briefing
followed by de-duplicated action items.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import TYPE_CHECKING

from inbox_agent.domain.email_metadata import EmailMetadata
from inbox_agent.domain.results import NarrativeRunResult
from inbox_agent.errors import ErrorCode, stage_failure
from inbox_agent.flows.dependencies import DigestDependencies
from inbox_agent.flows.formatting import extract_sender_name
from inbox_agent.flows.insights import AnalysisResult, analyze_emails, order_by_priority_and_category
from inbox_agent.services.gmail.fetch import fetch_unread_emails

if TYPE_CHECKING:
    from inbox_agent.api.streaming.controller import RunState

MAX_BRIEFING_BULLETS = 3
MAX_ACTION_ITEMS = 6
MAX_NARRATIVE_WORDS_BEFORE_ACTION_ITEMS = 120
LOOKBACK_QUERY_BUFFER_SECONDS = 1
SLANG_DENYLIST = ("asap", "btw", "gonna", "kinda", "lol")

_SLANG_RE = re.compile(r"\b(?:" + "|".join(SLANG_DENYLIST) + r")\b", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")
_TRAILING_PUNCTUATION_RE = re.compile(r"[.!?]+$")


@dataclass(frozen=True)
class LookbackWindow:
    start: datetime
    end: datetime

    @property
    def hours(self) -> int:
        return round((self.end - self.start).total_seconds() / 3600)

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


def resolve_lookback_window(now: datetime, hours: int = 48) -> LookbackWindow:
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return LookbackWindow(start=now - timedelta(hours=hours), end=now)


def build_lookback_query(window: LookbackWindow) -> str:
    """Gmail search for unread mail inside the window, padded by one second each side."""
    after = max(0, int(window.start.timestamp()) - LOOKBACK_QUERY_BUFFER_SECONDS)
    before = int(window.end.timestamp()) + LOOKBACK_QUERY_BUFFER_SECONDS
    return f"is:unread after:{after} before:{before}"


def _parse_date(value: str) -> datetime | None:
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def filter_emails_in_window(emails: list[EmailMetadata], window: LookbackWindow) -> list[EmailMetadata]:
    """Keep emails whose Date header falls in the window; unparseable dates are dropped."""
    kept = []
    for email in emails:
        sent_at = _parse_date(email.date)
        if sent_at is not None and window.contains(sent_at):
            kept.append(email)
    return kept


def sanitize_narrative_text(value: str) -> str:
    """Remove exclamation marks and slang, collapse whitespace."""
    sanitized = _SLANG_RE.sub("", value.replace("!", ""))
    return _WHITESPACE_RE.sub(" ", sanitized).strip()


def _normalize_action(value: str) -> str:
    return _TRAILING_PUNCTUATION_RE.sub("", sanitize_narrative_text(value).lower())


def extract_action_items(results: list[AnalysisResult], limit: int = MAX_ACTION_ITEMS) -> list[str]:
    """Distinct, sanitized actions in result order, capped at ``limit``."""
    items: list[str] = []
    seen: set[str] = set()
    for result in results:
        action = (result.insight.action or "").strip()
        if not action:
            continue
        normalized = _normalize_action(action)
        if not normalized or normalized in seen:
            continue
        seen.add(normalized)
        items.append(sanitize_narrative_text(action))
        if len(items) >= limit:
            break
    return items


def _clip_words(text: str, budget: int) -> tuple[str, int]:
    """Fit ``text`` into ``budget`` words; a trailing "..." takes one of them."""
    words = text.split()
    if len(words) <= budget:
        return text, len(words)
    return " ".join(words[:budget - 1] + ["..."]), budget


def build_narrative(
    results: list[AnalysisResult],
    action_items: list[str],
    *,
    lookback_hours: int = 48,
) -> str:
    """Markdown briefing with a bounded ``## Briefing`` and an ``## Action Items`` section.

    Every whitespace-separated token outside headings counts towards the
    word budget, bullet markers and the sender label included.
    """
    if not results:
        return f"No high-signal updates were found in the last {lookback_hours} hours."

    budget = MAX_NARRATIVE_WORDS_BEFORE_ACTION_ITEMS
    bullets: list[str] = []
    for result in results[:MAX_BRIEFING_BULLETS]:
        sender = sanitize_narrative_text(extract_sender_name(result.email.sender)) or "Unknown sender"
        summary = sanitize_narrative_text(result.insight.summary)
        # "-" plus "Sender Name:"
        overhead = 1 + len(sender.split())
        if budget - overhead < 1:
            break
        clipped, used = _clip_words(summary, budget - overhead)
        bullets.append(f"- {sender}: {clipped}")
        budget -= overhead + used

    briefing = "## Briefing\n" + "\n".join(bullets)
    if action_items:
        actions = "\n".join(f"- {item}" for item in action_items)
    else:
        actions = "- No action items."
    return f"{briefing}\n\n## Action Items\n{actions}"


async def run_narrative_digest(state: RunState, deps: DigestDependencies) -> dict:
    """Analyze unread mail from the lookback window and stream the briefing."""
    state.start_text()

    window = resolve_lookback_window(deps.clock(), deps.lookback_hours)
    with stage_failure(ErrorCode.GMAIL_FETCH_FAILED, "Failed to fetch unread emails"):
        mailbox = deps.mailbox_factory()
        fetched = await fetch_unread_emails(
            mailbox,
            query=build_lookback_query(window),
            max_results=deps.max_results,
            concurrency=deps.fetch_concurrency,
        )
    emails = filter_emails_in_window(fetched, window)
    state.outcome.items_seen = len(emails)

    results: list[AnalysisResult] = []
    if emails:
        results = await analyze_emails(
            emails,
            model=deps.model_factory(),
            extract_insight=deps.extract_insight,
            should_stop=state.checkpoint,
            outcome=state.outcome,
        )

    if state.outcome.items_failed > 0:
        last_failure = state.outcome.last_failure
        state.log.warning(
            "narrative.insights_failed",
            code=ErrorCode.INSIGHT_EXTRACT_FAILED.value,
            failed_count=state.outcome.items_failed,
            generated_count=state.outcome.items_processed,
            error_type=type(last_failure).__name__ if last_failure else None,
        )

    ordered = order_by_priority_and_category(results)
    action_items = extract_action_items(ordered)
    narrative = build_narrative(ordered, action_items, lookback_hours=window.hours)
    state.emit_text(narrative)

    return NarrativeRunResult(
        unread_count=len(emails),
        analyzed_count=len(ordered),
        failed_count=state.outcome.items_failed,
        action_item_count=len(action_items),
        timeframe_hours=window.hours,
        narrative=narrative,
        action_items=action_items,
        aborted=state.outcome.aborted,
    ).to_payload()
