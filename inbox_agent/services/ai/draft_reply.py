"""
Reply draft generation.
"""
from __future__ import annotations

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from inbox_agent.domain.email_metadata import EmailMetadata
from inbox_agent.domain.results import DraftReplyModelOutput
from inbox_agent.errors import DraftReplyExtractionError
from inbox_agent.services.ai.prompts import build_draft_reply_prompt


async def extract_draft_reply(
    model: BaseChatModel,
    email: EmailMetadata,
    context_messages: list[EmailMetadata],
    *,
    context_degraded: bool,
    voice_instructions: str | None = None,
) -> DraftReplyModelOutput:
    """Generate a reply draft for ``email`` grounded in ``context_messages``."""
    prompt = build_draft_reply_prompt(
        email,
        context_messages,
        context_degraded=context_degraded,
        voice_instructions=voice_instructions,
    )
    try:
        structured = model.with_structured_output(DraftReplyModelOutput)
        output = await structured.ainvoke([
            SystemMessage(content=prompt.system),
            HumanMessage(content=prompt.user),
        ])
        return DraftReplyModelOutput.model_validate(output)
    except Exception as e:
        raise DraftReplyExtractionError(
            f"Failed to extract draft reply for email ({email.id}): {type(e).__name__}"
        ) from e
