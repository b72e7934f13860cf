"""
Unit tests for digest markdown rendering.
"""
from __future__ import annotations

from inbox_agent.domain.email_insight import EmailInsight
from inbox_agent.domain.email_metadata import EmailMetadata
from inbox_agent.flows.digest import render_digest
from inbox_agent.flows.formatting import (
    READING_LIST_HEADER,
    extract_sender_name,
    format_digest_intro,
    format_insight_markdown,
    format_section_header,
)
from inbox_agent.flows.insights import AnalysisResult


def _email(subject: str = "Invoice", sender: str = '"Jane Doe" <jane@example.com>') -> EmailMetadata:
    return EmailMetadata(id="m1", subject=subject, sender=sender)


def _insight(urgency: str, category: str = "business", summary: str = "Pay the invoice", action: str | None = None):
    return EmailInsight(summary=summary, category=category, urgency=urgency, action=action)


class TestExtractSenderName:
    """Tests for extract_sender_name."""

    def test_quoted_and_bare_names(self):
        """Display names are taken from both quoted and bare forms."""
        assert extract_sender_name('"Jane Doe" <jane@example.com>') == "Jane Doe"
        assert extract_sender_name("Jane Doe <jane@example.com>") == "Jane Doe"

    def test_plain_address_is_returned_as_is(self):
        """Without a display name the raw sender is used."""
        assert extract_sender_name("jane@example.com") == "jane@example.com"


class TestFormatInsightMarkdown:
    """Tests for format_insight_markdown."""

    def test_action_required_entry(self):
        """Bold summary, arrow action and a separator."""
        entry = format_insight_markdown(_email(), _insight("action_required", action="Pay by Friday"))

        assert entry == "**Pay the invoice**\n-> Pay by Friday\n\n---\n\n"

    def test_action_required_without_action(self):
        """The arrow line is omitted when there is no action."""
        assert format_insight_markdown(_email(), _insight("action_required")) == "**Pay the invoice**\n\n---\n\n"

    def test_noise_entry(self):
        """Noise is a compact bullet with the sender name."""
        entry = format_insight_markdown(_email(), _insight("noise", "automated", "Build passed"))

        assert entry == "- Build passed _(Jane Doe)_\n"

    def test_reading_list_entry(self):
        """Newsletters marked fyi render as reading-list bullets."""
        entry = format_insight_markdown(
            _email(subject="Weekly digest"),
            _insight("fyi", "newsletter_or_spam", "New articles"),
        )

        assert entry == "- **Weekly digest** (Jane Doe) -- New articles\n"

    def test_fyi_entry(self):
        """Plain updates show sender, subject and summary."""
        entry = format_insight_markdown(_email(), _insight("fyi", "personal", "Dinner moved"))

        assert entry == "**From:** Jane Doe\n**Subject:** Invoice\n\nDinner moved\n\n---\n\n"


class TestDigestIntro:
    """Tests for format_digest_intro."""

    def test_counts_by_urgency(self):
        """Singular and plural wording per urgency."""
        insights = [
            _insight("action_required"),
            _insight("fyi"),
            _insight("fyi"),
            _insight("noise"),
        ]

        assert format_digest_intro(insights) == (
            "4 unread analyzed: **1 needs attention** · 2 updates · 1 background.\n\n"
        )

    def test_empty(self):
        """No insights, no intro."""
        assert format_digest_intro([]) == ""


class TestRenderDigest:
    """Tests for render_digest."""

    def test_sections_and_reading_list(self):
        """A header per urgency change, one reading-list header and a closing newline after noise."""
        results = [
            AnalysisResult(_email(), _insight("action_required", action="Pay")),
            AnalysisResult(_email(subject="News 1"), _insight("fyi", "newsletter_or_spam", "One")),
            AnalysisResult(_email(subject="News 2"), _insight("fyi", "newsletter_or_spam", "Two")),
            AnalysisResult(_email(), _insight("noise", "automated", "Ping")),
        ]

        chunks = render_digest(results)

        assert chunks[0].startswith("4 unread analyzed:")
        assert chunks.count(READING_LIST_HEADER) == 1
        assert format_section_header("action_required") in chunks
        assert format_section_header("fyi") in chunks
        assert format_section_header("noise") in chunks
        assert chunks[-1] == "\n"

    def test_without_intro(self):
        """Aborted digests skip the intro."""
        chunks = render_digest([AnalysisResult(_email(), _insight("fyi", "personal"))], include_intro=False)

        assert chunks[0] == "## Updates\n\n"
