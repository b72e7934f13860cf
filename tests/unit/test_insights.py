"""
Unit tests for the insight pipeline and priority ordering.
"""
from __future__ import annotations

import pytest

from inbox_agent.api.streaming.controller import RunOutcome
from inbox_agent.domain.email_insight import EmailInsight
from inbox_agent.domain.email_metadata import EmailMetadata
from inbox_agent.errors import InsightExtractionError
from inbox_agent.flows.insights import AnalysisResult, analyze_emails, order_by_priority_and_category


def _email(email_id: str) -> EmailMetadata:
    return EmailMetadata(id=email_id, subject=f"Subject {email_id}", sender=f"{email_id}@example.com")


def _insight(urgency: str = "fyi", category: str = "business", summary: str = "Summary") -> EmailInsight:
    return EmailInsight(summary=summary, category=category, urgency=urgency)


class TestAnalyzeEmails:
    """Tests for analyze_emails."""

    @pytest.mark.asyncio
    async def test_failures_are_counted_and_skipped(self):
        """A failing item never fails the batch."""
        emails = [_email("a"), _email("b"), _email("c")]

        async def extract(model, email):
            if email.id == "b":
                raise InsightExtractionError("bad output")
            return _insight(summary=f"About {email.id}")

        outcome = RunOutcome()
        results = await analyze_emails(
            emails,
            model=object(),
            extract_insight=extract,
            should_stop=lambda: False,
            outcome=outcome,
        )

        assert [result.email.id for result in results] == ["a", "c"]
        assert outcome.items_processed == 2
        assert outcome.items_failed == 1
        assert isinstance(outcome.last_failure, InsightExtractionError)
        assert outcome.aborted is False

    @pytest.mark.asyncio
    async def test_all_items_failing_yields_empty_results(self):
        """Every item failing still returns normally."""
        async def extract(model, email):
            raise InsightExtractionError("bad output")

        outcome = RunOutcome()
        results = await analyze_emails(
            [_email("a"), _email("b")],
            model=object(),
            extract_insight=extract,
            should_stop=lambda: False,
            outcome=outcome,
        )

        assert results == []
        assert outcome.items_failed == 2

    @pytest.mark.asyncio
    async def test_stop_gate_truncates_before_next_item(self):
        """Once the gate says stop, no further item is analyzed."""
        calls = []
        stop = False

        async def extract(model, email):
            nonlocal stop
            calls.append(email.id)
            stop = True
            return _insight()

        outcome = RunOutcome()
        results = await analyze_emails(
            [_email("a"), _email("b"), _email("c")],
            model=object(),
            extract_insight=extract,
            should_stop=lambda: stop,
            outcome=outcome,
        )

        assert calls == ["a"]
        assert [result.email.id for result in results] == ["a"]
        assert outcome.aborted is True


class TestOrdering:
    """Tests for priority ordering."""

    def test_orders_by_urgency_then_category(self):
        """action_required before fyi before noise; personal before business."""
        results = [
            AnalysisResult(_email("noise"), _insight("noise", "automated")),
            AnalysisResult(_email("fyi-biz"), _insight("fyi", "business")),
            AnalysisResult(_email("act"), _insight("action_required", "business")),
            AnalysisResult(_email("fyi-personal"), _insight("fyi", "personal")),
        ]

        ordered = order_by_priority_and_category(results)

        assert [result.email.id for result in ordered] == ["act", "fyi-personal", "fyi-biz", "noise"]

    def test_ties_keep_fetch_order(self):
        """Equal priority keeps the original order."""
        results = [AnalysisResult(_email(name), _insight()) for name in ("x", "y", "z")]

        assert [result.email.id for result in order_by_priority_and_category(results)] == ["x", "y", "z"]


class TestEmailInsight:
    """Validation rules on EmailInsight."""

    def test_blank_action_becomes_none(self):
        """Whitespace-only actions are treated as absent."""
        assert EmailInsight(summary="s", category="personal", urgency="fyi", action="  ").action is None

    def test_blank_summary_is_rejected(self):
        """A summary is required."""
        with pytest.raises(ValueError):
            EmailInsight(summary="   ", category="personal", urgency="fyi")
