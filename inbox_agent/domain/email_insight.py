"""
Structured insight produced for one email, and the priority ordering used by digests.
"""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

EmailCategory = Literal["personal", "business", "automated", "newsletter_or_spam"]
EmailUrgency = Literal["action_required", "fyi", "noise"]

URGENCY_ORDER: dict[str, int] = {
    "action_required": 0,
    "fyi": 1,
    "noise": 2,
}

CATEGORY_ORDER: dict[str, int] = {
    "personal": 0,
    "business": 1,
    "automated": 2,
    "newsletter_or_spam": 3,
}


class EmailInsight(BaseModel):
    """Triage result for a single email."""

    summary: str = Field(
        min_length=1,
        description="One concise sentence telling the reader what they need to know or do.",
    )
    category: EmailCategory = Field(
        description="Exactly one of personal, business, automated, newsletter_or_spam.",
    )
    urgency: EmailUrgency = Field(
        description="action_required when the reader must act, fyi for useful updates, noise otherwise.",
    )
    action: str | None = Field(
        default=None,
        description="The concrete next step for the reader, or null when nothing is required.",
    )

    @field_validator("summary")
    @classmethod
    def validate_summary(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("summary must not be blank")
        return value

    @field_validator("action")
    @classmethod
    def normalize_action(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @property
    def priority(self) -> tuple[int, int]:
        """Sort key: urgency first, then category."""
        return URGENCY_ORDER[self.urgency], CATEGORY_ORDER[self.category]

