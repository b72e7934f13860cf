"""
Draft reply run (POST /draft-reply).
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from inbox_agent.domain.requests import DraftReplyRequest
from inbox_agent.domain.results import DraftReplyModelOutput, DraftReplyResult
from inbox_agent.errors import ErrorCode, RunError, stage_failure
from inbox_agent.flows.dependencies import DraftReplyDependencies

if TYPE_CHECKING:
    from inbox_agent.api.streaming.controller import RunState

INVALID_REQUEST_MESSAGE = "Invalid draft reply request"


class SideEffectGuard:
    """At-most-once gate around the Gmail draft-create call."""

    def __init__(self) -> None:
        self.attempted = False
        self.consumed = False

    def acquire(self) -> None:
        if self.attempted:
            raise RuntimeError("Draft creation was already attempted for this run")
        self.attempted = True

    def mark_consumed(self) -> None:
        if not self.attempted or self.consumed:
            raise RuntimeError("Draft creation must be acquired once before it is consumed")
        self.consumed = True


def parse_draft_reply_request(body: Any) -> tuple[DraftReplyRequest | None, str | None]:
    """Validate a decoded JSON body; returns (request, None) or (None, reason)."""
    if not isinstance(body, dict):
        return None, "Request body must be a JSON object"
    try:
        return DraftReplyRequest.model_validate(body), None
    except ValidationError as e:
        fields = sorted({".".join(str(part) for part in error["loc"]) for error in e.errors()})
        return None, f"Invalid fields: {', '.join(fields)}" if fields else str(e)


def format_draft_content(draft: DraftReplyModelOutput) -> str:
    content = ""
    if draft.subject_suggestion:
        content += f"Subject suggestion: {draft.subject_suggestion}\n\n"
    content += draft.draft_text
    if draft.risk_flags:
        content += f"\n\nRisk flags: {', '.join(draft.risk_flags)}"
    return content + "\n"


async def run_draft_reply(
    state: RunState,
    deps: DraftReplyDependencies,
    request: DraftReplyRequest | None,
    invalid_reason: str | None = None,
    side_effect: SideEffectGuard | None = None,
) -> dict:
    """Fetch thread context, generate a reply and save it as a Gmail draft exactly once.

    ``side_effect`` records whether the save was attempted and whether it
    went through; a fresh guard is used when none is given.
    """
    if request is None:
        message = f"{INVALID_REQUEST_MESSAGE}: {invalid_reason}" if invalid_reason else INVALID_REQUEST_MESSAGE
        raise RunError(message, code=ErrorCode.INVALID_REQUEST)

    side_effect = side_effect or SideEffectGuard()
    state.checkpoint()
    state.start_text()

    with stage_failure(ErrorCode.CONTEXT_FETCH_FAILED, "Failed to fetch reply context"):
        mailbox = deps.mailbox_factory()
        context = await deps.fetch_reply_context(
            mailbox,
            request.email_id,
            max_messages=deps.max_context_messages,
        )
    state.outcome.items_seen = len(context.messages)
    state.checkpoint()

    if context.degraded:
        state.log.warning(
            "draft_reply.context_degraded",
            code=ErrorCode.CONTEXT_DEGRADED.value,
            email_id=request.email_id,
        )

    with stage_failure(ErrorCode.DRAFT_GENERATION_FAILED, "Failed to generate draft reply"):
        draft = await deps.extract_draft_reply(
            deps.model_factory(),
            context.target,
            context.messages,
            context_degraded=context.degraded,
            voice_instructions=request.voice_instructions,
        )
    state.checkpoint()

    state.emit_text(format_draft_content(draft))

    # Last gate: nothing may reach Gmail once the client has gone
    state.checkpoint()
    side_effect.acquire()
    with stage_failure(ErrorCode.DRAFT_SAVE_FAILED, "Failed to save Gmail draft"):
        draft_id = await deps.create_reply_draft(
            mailbox,
            thread_id=context.target.thread_id,
            to=context.target.reply_address,
            subject=draft.subject_suggestion or context.target.subject,
            body=draft.draft_text,
            in_reply_to=context.in_reply_to,
            references=context.references,
        )
    side_effect.mark_consumed()
    state.outcome.items_processed = 1

    state.log.info(
        "draft_reply.draft_saved",
        email_id=request.email_id,
        gmail_draft_id=draft_id,
        context_message_count=len(context.messages),
        context_degraded=context.degraded,
    )

    return DraftReplyResult(
        email_id=request.email_id,
        gmail_draft_id=draft_id,
        context_message_count=len(context.messages),
        context_degraded=context.degraded,
        risk_flags=list(draft.risk_flags),
    ).to_payload()
