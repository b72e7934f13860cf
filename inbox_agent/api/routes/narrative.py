"""
Narrative briefing endpoint.
"""
from __future__ import annotations

from functools import partial

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from pydantic import ValidationError

from inbox_agent.api.deps import get_digest_dependencies
from inbox_agent.api.streaming import RunController, RunShape, stream_run
from inbox_agent.api.utils import new_request_id, read_json_body
from inbox_agent.domain.requests import NarrativeRequest, RunContext
from inbox_agent.flows.dependencies import DigestDependencies
from inbox_agent.flows.narrative import run_narrative_digest

router = APIRouter()


def parse_narrative_request(body: object) -> NarrativeRequest:
    """Anything that is not a valid narrative request falls back to defaults."""
    if not isinstance(body, dict):
        return NarrativeRequest()
    try:
        return NarrativeRequest.model_validate(body)
    except ValidationError:
        return NarrativeRequest()


@router.post("/narrative")
async def narrative(
    request: Request,
    deps: DigestDependencies = Depends(get_digest_dependencies),
) -> StreamingResponse:
    """Stream a short briefing of recent unread mail with action items."""
    request_id = new_request_id()
    body, _ = await read_json_body(request)
    parsed = parse_narrative_request(body)

    controller = RunController(
        name="narrative",
        shape=RunShape.TOLERANT_DIGEST,
        context=RunContext.resolve(parsed.run_id, parsed.thread_id, request_id),
        request_id=request_id,
    )
    return stream_run(controller, partial(run_narrative_digest, deps=deps))
