"""
Request bodies accepted by the run endpoints and the run identity derived from them.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_RUN_PREFIX = "run"
DEFAULT_THREAD_PREFIX = "thread"


@dataclass(frozen=True)
class RunContext:
    """Identity of one run, fixed for its whole lifetime."""

    run_id: str
    thread_id: str

    @classmethod
    def resolve(cls, run_id: Any, thread_id: Any, request_id: str) -> RunContext:
        """Use caller-supplied ids when they are non-empty strings, else derive from request_id."""
        return cls(
            run_id=_clean_id(run_id) or f"{DEFAULT_RUN_PREFIX}-{request_id}",
            thread_id=_clean_id(thread_id) or f"{DEFAULT_THREAD_PREFIX}-{request_id}",
        )

    @classmethod
    def from_body(cls, body: Any, request_id: str) -> RunContext:
        """Lenient variant: pick runId/threadId out of any JSON object, ignore everything else."""
        if not isinstance(body, dict):
            return cls.resolve(None, None, request_id)
        return cls.resolve(body.get("runId"), body.get("threadId"), request_id)


def _clean_id(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    return value.strip() or None


class _StrictRequest(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class NarrativeRequest(_StrictRequest):
    """Optional run identity for POST /narrative."""

    run_id: str | None = Field(default=None, min_length=1)
    thread_id: str | None = Field(default=None, min_length=1)


class DraftReplyRequest(_StrictRequest):
    """Body of POST /draft-reply."""

    email_id: str = Field(min_length=1)
    run_id: str | None = Field(default=None, min_length=1)
    thread_id: str | None = Field(default=None, min_length=1)
    voice_instructions: str | None = Field(default=None, min_length=1)
