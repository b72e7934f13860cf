"""
Per-email insight extraction.
"""
from __future__ import annotations

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from inbox_agent.domain.email_insight import EmailInsight
from inbox_agent.domain.email_metadata import EmailMetadata
from inbox_agent.errors import InsightExtractionError
from inbox_agent.services.ai.prompts import build_insight_prompt


async def extract_email_insight(model: BaseChatModel, email: EmailMetadata) -> EmailInsight:
    """Ask the model for a structured EmailInsight.

    Raises:
        InsightExtractionError: the call failed or the output did not validate.
    """
    prompt = build_insight_prompt(email)
    try:
        structured = model.with_structured_output(EmailInsight)
        output = await structured.ainvoke([
            SystemMessage(content=prompt.system),
            HumanMessage(content=prompt.user),
        ])
        return EmailInsight.model_validate(output)
    except Exception as e:
        raise InsightExtractionError(
            f"Failed to extract insight for email ({email.id}): {type(e).__name__}"
        ) from e
