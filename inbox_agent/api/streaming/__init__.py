"""
Run lifecycle streaming: events, sink, abort coordination, terminal guard and controller.
"""
from __future__ import annotations

from inbox_agent.api.streaming.abort import AbortCoordinator, AbortSignal
from inbox_agent.api.streaming.controller import (
    RecipientGone,
    RunController,
    RunOutcome,
    RunShape,
    RunState,
)
from inbox_agent.api.streaming.guard import TerminalEventGuard
from inbox_agent.api.streaming.response import stream_run
from inbox_agent.api.streaming.sink import EventSink, WriteResult

__all__ = [
    "AbortCoordinator",
    "AbortSignal",
    "EventSink",
    "RecipientGone",
    "RunController",
    "RunOutcome",
    "RunShape",
    "RunState",
    "TerminalEventGuard",
    "WriteResult",
    "stream_run",
]
