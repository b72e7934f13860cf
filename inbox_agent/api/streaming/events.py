"""
AG-UI stream events and their SSE encoding.
"""
from __future__ import annotations

import json
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

EVENT_RUN_STARTED = "RUN_STARTED"
EVENT_TEXT_MESSAGE_START = "TEXT_MESSAGE_START"
EVENT_TEXT_MESSAGE_CONTENT = "TEXT_MESSAGE_CONTENT"
EVENT_TEXT_MESSAGE_END = "TEXT_MESSAGE_END"
EVENT_RUN_FINISHED = "RUN_FINISHED"
EVENT_RUN_ERROR = "RUN_ERROR"

TERMINAL_EVENT_TYPES = frozenset({EVENT_RUN_FINISHED, EVENT_RUN_ERROR})


class _Event(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class RunStartedEvent(_Event):
    type: Literal["RUN_STARTED"] = EVENT_RUN_STARTED
    thread_id: str
    run_id: str
    input: Any | None = None


class TextMessageStartEvent(_Event):
    type: Literal["TEXT_MESSAGE_START"] = EVENT_TEXT_MESSAGE_START
    message_id: str
    role: Literal["assistant"] = "assistant"


class TextMessageContentEvent(_Event):
    type: Literal["TEXT_MESSAGE_CONTENT"] = EVENT_TEXT_MESSAGE_CONTENT
    message_id: str
    delta: str


class TextMessageEndEvent(_Event):
    type: Literal["TEXT_MESSAGE_END"] = EVENT_TEXT_MESSAGE_END
    message_id: str


class RunFinishedEvent(_Event):
    type: Literal["RUN_FINISHED"] = EVENT_RUN_FINISHED
    thread_id: str
    run_id: str
    result: Any | None = None


class RunErrorEvent(_Event):
    type: Literal["RUN_ERROR"] = EVENT_RUN_ERROR
    message: str
    code: str | None = None


StreamEvent = Union[
    RunStartedEvent,
    TextMessageStartEvent,
    TextMessageContentEvent,
    TextMessageEndEvent,
    RunFinishedEvent,
    RunErrorEvent,
]


def event_payload(event: StreamEvent) -> dict[str, Any]:
    """camelCase dict for one event; optional top-level fields are omitted when unset."""
    payload = event.model_dump(by_alias=True)
    for optional in ("input", "result", "code"):
        if optional in payload and payload[optional] is None:
            del payload[optional]
    return payload


def encode_sse(event: StreamEvent) -> str:
    """Encode one event as an SSE ``data:`` frame."""
    return f"data: {json.dumps(event_payload(event))}\n\n"
