"""
Terminal event guard: balanced text framing and exactly one terminal event per run.
"""
from __future__ import annotations

from typing import Any

import structlog

from inbox_agent.api.streaming.events import (
    RunErrorEvent,
    RunFinishedEvent,
    RunStartedEvent,
    StreamEvent,
    TextMessageContentEvent,
    TextMessageEndEvent,
    TextMessageStartEvent,
)
from inbox_agent.api.streaming.sink import EventSink, WriteResult
from inbox_agent.domain.requests import RunContext

logger = structlog.get_logger(__name__)


class TerminalEventGuard:
    """All writes of one run go through here.

    Tracks ``text_started``, ``text_ended`` and ``terminal_emitted``. The two
    terminal operations are idempotent and close the sink, so nothing can be
    written after a terminal event.
    """

    def __init__(self, sink: EventSink, context: RunContext, message_id: str):
        self.sink = sink
        self.context = context
        self.message_id = message_id
        self.text_started = False
        self.text_ended = False
        self.terminal_emitted = False
        self.recipient_gone = False

    def _write(self, event: StreamEvent) -> WriteResult:
        if self.terminal_emitted:
            logger.debug("stream.event_dropped_after_terminal", event_type=event.type)
            return WriteResult.RECIPIENT_GONE
        result = self.sink.write(event)
        if result is WriteResult.RECIPIENT_GONE:
            self.recipient_gone = True
        return result

    def run_started(self, input: Any | None = None) -> WriteResult:
        return self._write(RunStartedEvent(
            thread_id=self.context.thread_id,
            run_id=self.context.run_id,
            input=input,
        ))

    def start_text(self) -> WriteResult:
        if self.text_started:
            return WriteResult.WRITTEN
        result = self._write(TextMessageStartEvent(message_id=self.message_id))
        if result is WriteResult.WRITTEN:
            self.text_started = True
        return result

    def content(self, delta: str) -> WriteResult:
        return self._write(TextMessageContentEvent(message_id=self.message_id, delta=delta))

    def end_text_if_needed(self) -> None:
        if self.text_started and not self.text_ended:
            self.text_ended = True
            self._write(TextMessageEndEvent(message_id=self.message_id))

    def _emit_terminal(self, event: StreamEvent) -> bool:
        if self.terminal_emitted:
            return False
        self.end_text_if_needed()
        emitted = False
        if not self.recipient_gone:
            emitted = self._write(event) is WriteResult.WRITTEN
        self.terminal_emitted = True
        self.sink.close()
        return emitted

    def emit_error_if_needed(self, message: str, code: str | None = None) -> bool:
        """Emit RUN_ERROR unless a terminal event already went out. Returns True if written."""
        return self._emit_terminal(RunErrorEvent(message=message, code=code))

    def emit_finished_if_needed(self, result: Any | None = None) -> bool:
        """Emit RUN_FINISHED unless a terminal event already went out. Returns True if written."""
        return self._emit_terminal(RunFinishedEvent(
            thread_id=self.context.thread_id,
            run_id=self.context.run_id,
            result=result,
        ))

    def close_silently(self) -> None:
        """Consume the terminal slot without writing (recipient already gone)."""
        self.terminal_emitted = True
        self.sink.close()
