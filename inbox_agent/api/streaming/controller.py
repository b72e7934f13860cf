"""
Run lifecycle controller.

One controller drives every endpoint. A run is:

    RUN_STARTED -> stage coroutine -> RUN_FINISHED | RUN_ERROR

The stage coroutine is endpoint specific (digest, narrative, draft reply) and
talks to the stream only through RunState. The RunShape decides what an
observed abort means:

- TOLERANT_DIGEST: the gate stops further work, the run still finishes.
- FATAL_ON_ABORT: the gate raises request_aborted, the run ends in RUN_ERROR.
"""
from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable

import structlog

from inbox_agent.api.streaming.abort import AbortCoordinator, AbortSignal
from inbox_agent.api.streaming.guard import TerminalEventGuard
from inbox_agent.api.streaming.sink import EventSink, WriteResult
from inbox_agent.domain.requests import RunContext
from inbox_agent.errors import ErrorCode, classify_error, error_message

logger = structlog.get_logger(__name__)


class RunShape(str, Enum):
    TOLERANT_DIGEST = "tolerant_digest"
    FATAL_ON_ABORT = "fatal_on_abort"


class RecipientGone(Exception):
    """The client disconnected; stop producing output without a RUN_ERROR."""


@dataclass
class RunOutcome:
    """Counters accumulated by the stages, logged once at the end of the run."""

    items_seen: int = 0
    items_processed: int = 0
    items_failed: int = 0
    aborted: bool = False
    last_failure: BaseException | None = None

    def record_failure(self, error: BaseException) -> None:
        self.items_failed += 1
        self.last_failure = error

    def log_fields(self) -> dict[str, Any]:
        return {
            "items_seen": self.items_seen,
            "items_processed": self.items_processed,
            "items_failed": self.items_failed,
            "aborted": self.aborted,
        }


@dataclass
class RunState:
    """Per-run mutable state handed to the stage coroutine."""

    shape: RunShape
    context: RunContext
    request_id: str
    guard: TerminalEventGuard
    abort: AbortCoordinator
    log: Any
    outcome: RunOutcome = field(default_factory=RunOutcome)

    def checkpoint(self) -> bool:
        """Gate point. Returns True when a tolerant run should stop; raises for fatal runs."""
        if self.shape is RunShape.FATAL_ON_ABORT:
            self.abort.ensure_not_aborted()
            return False
        if self.abort.should_stop():
            self.outcome.aborted = True
            return True
        return False

    def require_written(self, result: WriteResult) -> None:
        if result is WriteResult.RECIPIENT_GONE:
            self.abort.signal.abort("recipient_gone")
            raise RecipientGone()

    def start_text(self) -> None:
        self.require_written(self.guard.start_text())

    def emit_text(self, delta: str) -> None:
        if delta:
            self.require_written(self.guard.content(delta))


Stage = Callable[[RunState], Awaitable[Any]]


class RunController:
    """Drives one request from RUN_STARTED to exactly one terminal event."""

    def __init__(
        self,
        *,
        name: str,
        shape: RunShape,
        context: RunContext,
        request_id: str,
        sink: EventSink | None = None,
        signal: AbortSignal | None = None,
        started_input: Any | None = None,
    ):
        self.name = name
        self.shape = shape
        self.context = context
        self.request_id = request_id
        self.sink = sink or EventSink()
        self.signal = signal or AbortSignal()
        self.started_input = started_input
        self.log = logger.bind(
            route=name,
            request_id=request_id,
            run_id=context.run_id,
            thread_id=context.thread_id,
        )
        self.state = RunState(
            shape=shape,
            context=context,
            request_id=request_id,
            guard=TerminalEventGuard(self.sink, context, message_id=f"msg-{uuid.uuid4()}"),
            abort=AbortCoordinator(self.signal),
            log=self.log,
        )

    def disconnect(self) -> None:
        """Transport teardown: the client is gone before the run finished."""
        self.sink.disconnect()
        self.signal.abort("client_disconnected")

    async def run(self, stage: Stage) -> RunOutcome:
        state = self.state
        started = time.monotonic()
        self.log.info(f"{self.name}.run_started", shape=self.shape.value)

        try:
            state.require_written(state.guard.run_started(self.started_input))
            if self.shape is RunShape.FATAL_ON_ABORT:
                state.checkpoint()
            result = await stage(state)
            if self.shape is RunShape.TOLERANT_DIGEST and self.signal.aborted:
                state.outcome.aborted = True
            state.guard.emit_finished_if_needed(result)
            self._log_finished(started)
        except RecipientGone:
            state.outcome.aborted = True
            state.guard.close_silently()
            self._log_finished(started)
        except Exception as e:
            code = classify_error(e)
            if code is ErrorCode.REQUEST_ABORTED:
                state.outcome.aborted = True
            self.log.error(
                f"{self.name}.run_failed",
                code=code.value,
                error=error_message(e),
                error_type=type(e).__name__,
                cause_type=type(e.__cause__).__name__ if e.__cause__ else None,
                duration_ms=_elapsed_ms(started),
                **state.outcome.log_fields(),
            )
            state.guard.emit_error_if_needed(error_message(e), code.value)
        finally:
            state.abort.mark_terminal()
            if not state.guard.terminal_emitted:
                state.guard.close_silently()

        return state.outcome

    def _log_finished(self, started: float) -> None:
        event = f"{self.name}.run_aborted" if self.state.outcome.aborted else f"{self.name}.run_completed"
        self.log.info(event, duration_ms=_elapsed_ms(started), **self.state.outcome.log_fields())


def _elapsed_ms(started: float) -> int:
    return round((time.monotonic() - started) * 1000)
