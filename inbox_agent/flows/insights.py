"""
Insight pipeline: sequential, failure-tolerant analysis of fetched emails.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Protocol

import structlog

from inbox_agent.domain.email_insight import EmailInsight
from inbox_agent.domain.email_metadata import EmailMetadata

logger = structlog.get_logger(__name__)

InsightExtractor = Callable[[Any, EmailMetadata], Awaitable[EmailInsight]]


class OutcomeCounters(Protocol):
    items_processed: int
    aborted: bool

    def record_failure(self, error: BaseException) -> None: ...


@dataclass(frozen=True)
class AnalysisResult:
    email: EmailMetadata
    insight: EmailInsight


async def analyze_emails(
    emails: list[EmailMetadata],
    *,
    model: Any,
    extract_insight: InsightExtractor,
    should_stop: Callable[[], bool],
    outcome: OutcomeCounters,
) -> list[AnalysisResult]:
    """Analyze emails one at a time, in fetch order.

    The abort gate is consulted before every item. A failing item is counted
    and skipped; it never fails the batch.
    """
    results: list[AnalysisResult] = []
    for email in emails:
        if should_stop():
            outcome.aborted = True
            break
        try:
            insight = await extract_insight(model, email)
        except Exception as e:
            outcome.record_failure(e)
            logger.debug(
                "insight.extract_failed",
                email_id=email.id,
                error_type=type(e).__name__,
            )
            continue
        outcome.items_processed += 1
        results.append(AnalysisResult(email=email, insight=insight))
    return results


def order_by_priority_and_category(results: list[AnalysisResult]) -> list[AnalysisResult]:
    """Stable sort: urgency first, then category; ties keep fetch order."""
    return sorted(results, key=lambda result: result.insight.priority)
