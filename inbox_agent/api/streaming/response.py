"""
SSE transport: runs a controller as a background producer and streams its sink.
"""
from __future__ import annotations

import asyncio
from typing import AsyncIterator

import structlog
from fastapi.responses import StreamingResponse

from inbox_agent.api.streaming.controller import RunController, Stage

logger = structlog.get_logger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}

# Strong references so in-flight runs are not garbage collected after a disconnect
_active_runs: set[asyncio.Task] = set()


async def _drain(controller: RunController, stage: Stage) -> AsyncIterator[str]:
    task = asyncio.create_task(controller.run(stage))
    _active_runs.add(task)
    task.add_done_callback(_active_runs.discard)

    try:
        async for frame in controller.sink.frames():
            yield frame
    finally:
        # Teardown before the run closed its sink means the client went away.
        # The run task keeps going until its next gate, so an in-flight save
        # completes and a pending save never starts.
        if not controller.sink.closed:
            logger.info(
                "stream.client_disconnected",
                route=controller.name,
                run_id=controller.context.run_id,
                thread_id=controller.context.thread_id,
            )
            controller.disconnect()


def stream_run(controller: RunController, stage: Stage) -> StreamingResponse:
    """Return the streaming response for one run."""
    return StreamingResponse(
        _drain(controller, stage),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
