"""
Model output and terminal result payloads.
"""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DRAFT_REPLY_RISK_FLAGS = (
    "missing_context",
    "uncertain_facts",
    "sensitive_request",
    "tone_mismatch",
)

RiskFlag = Literal["missing_context", "uncertain_facts", "sensitive_request", "tone_mismatch"]


class DraftReplyModelOutput(BaseModel):
    """Structured output requested from the model when drafting a reply."""

    draft_text: str = Field(min_length=1, description="The full reply body, ready to paste.")
    subject_suggestion: str | None = Field(
        default=None,
        description="Optional improved subject line for the reply.",
    )
    risk_flags: list[RiskFlag] = Field(
        default_factory=list,
        description="Zero or more of: " + ", ".join(DRAFT_REPLY_RISK_FLAGS),
    )

    @field_validator("draft_text")
    @classmethod
    def validate_draft_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("draft_text must not be blank")
        return value

    @field_validator("subject_suggestion")
    @classmethod
    def normalize_subject(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @field_validator("risk_flags")
    @classmethod
    def dedupe_risk_flags(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(value))


class _CamelResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)


class NarrativeRunResult(_CamelResult):
    """RUN_FINISHED result for a narrative run."""

    unread_count: int
    analyzed_count: int
    failed_count: int
    action_item_count: int
    timeframe_hours: int
    narrative: str
    action_items: list[str]
    aborted: bool = False


class DraftReplyResult(_CamelResult):
    """RUN_FINISHED result for a draft-reply run."""

    email_id: str
    gmail_draft_id: str
    context_message_count: int
    context_degraded: bool
    risk_flags: list[str]
