"""
Draft reply endpoint.
"""
from __future__ import annotations

from functools import partial

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from inbox_agent.api.deps import get_draft_reply_dependencies
from inbox_agent.api.streaming import RunController, RunShape, stream_run
from inbox_agent.api.utils import new_request_id, read_json_body
from inbox_agent.domain.requests import RunContext
from inbox_agent.flows.dependencies import DraftReplyDependencies
from inbox_agent.flows.draft_reply import parse_draft_reply_request, run_draft_reply

router = APIRouter()


@router.post("/draft-reply")
async def draft_reply(
    request: Request,
    deps: DraftReplyDependencies = Depends(get_draft_reply_dependencies),
) -> StreamingResponse:
    """Generate a reply for one email and save it as a Gmail draft."""
    request_id = new_request_id()
    body, decoded = await read_json_body(request)

    if decoded:
        parsed, invalid_reason = parse_draft_reply_request(body)
    else:
        parsed, invalid_reason = None, "Request body must be valid JSON"

    if parsed is not None:
        context = RunContext.resolve(parsed.run_id, parsed.thread_id, request_id)
    else:
        context = RunContext.from_body(body, request_id)

    controller = RunController(
        name="draft_reply",
        shape=RunShape.FATAL_ON_ABORT,
        context=context,
        request_id=request_id,
    )
    return stream_run(
        controller,
        partial(run_draft_reply, deps=deps, request=parsed, invalid_reason=invalid_reason),
    )
