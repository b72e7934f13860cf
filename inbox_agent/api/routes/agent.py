"""
Insight digest endpoint.
"""
from __future__ import annotations

from functools import partial

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from inbox_agent.api.deps import get_digest_dependencies
from inbox_agent.api.streaming import RunController, RunShape, stream_run
from inbox_agent.api.utils import new_request_id, read_json_body
from inbox_agent.domain.requests import RunContext
from inbox_agent.flows.dependencies import DigestDependencies
from inbox_agent.flows.digest import run_insight_digest

router = APIRouter()


@router.post("/agent")
async def agent(
    request: Request,
    deps: DigestDependencies = Depends(get_digest_dependencies),
) -> StreamingResponse:
    """Stream a markdown digest of unread inbox mail, most urgent first."""
    request_id = new_request_id()
    body, _ = await read_json_body(request)

    controller = RunController(
        name="agent",
        shape=RunShape.TOLERANT_DIGEST,
        context=RunContext.from_body(body, request_id),
        request_id=request_id,
        started_input=body if isinstance(body, dict) else None,
    )
    return stream_run(controller, partial(run_insight_digest, deps=deps))
