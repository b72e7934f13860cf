"""
Queue-backed SSE sink shared by a run task (producer) and the response body (consumer).
"""
from __future__ import annotations

import asyncio
from enum import Enum
from typing import AsyncIterator

from inbox_agent.api.streaming.events import StreamEvent, encode_sse

_END_OF_STREAM = None


class WriteResult(str, Enum):
    """Outcome of a single write to the sink."""

    WRITTEN = "written"
    RECIPIENT_GONE = "recipient_gone"


class EventSink:
    """Ordered, unbounded frame queue.

    Once the sink is closed (run finished) or disconnected (client left),
    every further write reports RECIPIENT_GONE instead of raising. Encoding
    errors are real failures and propagate to the caller.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[str | None] = asyncio.Queue()
        self._closed = False
        self._disconnected = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def disconnected(self) -> bool:
        return self._disconnected

    def write(self, event: StreamEvent) -> WriteResult:
        if self._closed:
            return WriteResult.RECIPIENT_GONE
        frame = encode_sse(event)
        self._queue.put_nowait(frame)
        return WriteResult.WRITTEN

    def close(self) -> None:
        """End the stream after everything already written has been drained."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_END_OF_STREAM)

    def disconnect(self) -> None:
        """The consumer went away; nothing written from now on will be delivered."""
        self._disconnected = True
        self.close()

    async def frames(self) -> AsyncIterator[str]:
        while True:
            frame = await self._queue.get()
            if frame is _END_OF_STREAM:
                return
            yield frame
