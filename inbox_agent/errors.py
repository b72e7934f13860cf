"""
Run failure taxonomy.
"""
from __future__ import annotations

from contextlib import contextmanager
from enum import Enum
from typing import Iterator


class ErrorCode(str, Enum):
    """Machine-readable codes carried by RUN_ERROR events and warning logs."""

    INVALID_REQUEST = "invalid_request"
    CONTEXT_FETCH_FAILED = "context_fetch_failed"
    GMAIL_FETCH_FAILED = "gmail_fetch_failed"
    DRAFT_GENERATION_FAILED = "draft_generation_failed"
    DRAFT_SAVE_FAILED = "draft_save_failed"
    REQUEST_ABORTED = "request_aborted"
    INSIGHT_EXTRACT_FAILED = "insight_extract_failed"
    CONTEXT_DEGRADED = "context_degraded"
    RUN_FAILED = "run_failed"


class RunError(Exception):
    """A classified run failure, surfaced to the client as one RUN_ERROR event."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.RUN_FAILED):
        super().__init__(message)
        self.message = message
        self.code = code


class InsightExtractionError(Exception):
    """The model could not produce a valid insight for one email."""


class DraftReplyExtractionError(Exception):
    """The model could not produce a valid reply draft."""


class GmailFetchError(Exception):
    """Listing or fetching messages from Gmail failed."""


class DraftCreationError(Exception):
    """Gmail rejected the draft or returned no draft id."""


def classify_error(exc: BaseException) -> ErrorCode:
    """Map any exception raised by a run stage onto a taxonomy code."""
    if isinstance(exc, RunError):
        return exc.code
    return ErrorCode.RUN_FAILED


def error_message(exc: BaseException) -> str:
    """Human-readable message for a RUN_ERROR event."""
    if isinstance(exc, RunError):
        return exc.message
    return str(exc) or f"{type(exc).__name__}: An error occurred during the run"


@contextmanager
def stage_failure(code: ErrorCode, message: str) -> Iterator[None]:
    """Re-raise anything escaping the block as a RunError with the stage's code.

    Already classified failures (including aborts) pass through untouched.
    """
    try:
        yield
    except RunError:
        raise
    except Exception as e:
        raise RunError(f"{message}: {e}" if str(e) else message, code=code) from e
