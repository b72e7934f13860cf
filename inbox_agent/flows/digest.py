"""
Insight digest run (POST /agent).
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from inbox_agent.errors import ErrorCode, stage_failure
from inbox_agent.flows.dependencies import DigestDependencies
from inbox_agent.flows.formatting import (
    NO_UNREAD_NOTICE,
    READING_LIST_HEADER,
    format_digest_intro,
    format_insight_markdown,
    format_section_header,
    is_reading_list_item,
)
from inbox_agent.flows.insights import AnalysisResult, analyze_emails, order_by_priority_and_category
from inbox_agent.services.gmail.fetch import INBOX_LABEL, UNREAD_QUERY, fetch_unread_emails

if TYPE_CHECKING:
    from inbox_agent.api.streaming.controller import RunState


def render_digest(results: list[AnalysisResult], *, include_intro: bool = True) -> list[str]:
    """Digest chunks in emission order for already sorted results."""
    chunks: list[str] = []
    if include_intro and results:
        intro = format_digest_intro([result.insight for result in results])
        if intro:
            chunks.append(intro)

    current_urgency: str | None = None
    reading_list_open = False
    for result in results:
        urgency = result.insight.urgency
        if urgency != current_urgency:
            chunks.append(format_section_header(urgency))
            current_urgency = urgency
            reading_list_open = False
        if is_reading_list_item(result.insight) and not reading_list_open:
            chunks.append(READING_LIST_HEADER)
            reading_list_open = True
        chunks.append(format_insight_markdown(result.email, result.insight))

    # Compact bullet lists need a closing blank line
    if current_urgency == "noise":
        chunks.append("\n")
    return chunks


async def run_insight_digest(state: RunState, deps: DigestDependencies) -> None:
    """Fetch unread inbox mail, analyze each message and stream a markdown digest."""
    state.start_text()

    with stage_failure(ErrorCode.GMAIL_FETCH_FAILED, "Failed to fetch unread emails"):
        mailbox = deps.mailbox_factory()
        emails = await fetch_unread_emails(
            mailbox,
            query=UNREAD_QUERY,
            label_ids=[INBOX_LABEL],
            max_results=deps.max_results,
            concurrency=deps.fetch_concurrency,
        )
    state.outcome.items_seen = len(emails)

    if not emails:
        state.emit_text(NO_UNREAD_NOTICE)
        return None

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
            "agent.insights_failed",
            code=ErrorCode.INSIGHT_EXTRACT_FAILED.value,
            failed_count=state.outcome.items_failed,
            generated_count=state.outcome.items_processed,
            error_type=type(last_failure).__name__ if last_failure else None,
        )

    ordered = order_by_priority_and_category(results)
    for chunk in render_digest(ordered, include_intro=not state.outcome.aborted):
        state.emit_text(chunk)
    return None
