"""
Cancellation signal and the gate checks consulted by run stages.
"""
from __future__ import annotations

from inbox_agent.errors import ErrorCode, RunError

REQUEST_ABORTED_MESSAGE = "Request aborted by client"


class AbortSignal:
    """One-way cancellation flag owned by the request transport."""

    def __init__(self) -> None:
        self._aborted = False
        self.reason: str | None = None

    @property
    def aborted(self) -> bool:
        return self._aborted

    def abort(self, reason: str = "client_disconnected") -> None:
        if not self._aborted:
            self._aborted = True
            self.reason = reason


class AbortCoordinator:
    """Predicate over the abort signal plus the run's own terminal flag.

    Holds no timers. Once the run is terminal every gate reports "stop", so a
    late abort can never restart work.
    """

    def __init__(self, signal: AbortSignal):
        self.signal = signal
        self._terminal = False

    @property
    def aborted(self) -> bool:
        return self.signal.aborted

    def mark_terminal(self) -> None:
        self._terminal = True

    def should_stop(self) -> bool:
        """Tolerant gate: True when no further work should start."""
        return self.signal.aborted or self._terminal

    def ensure_not_aborted(self) -> None:
        """Fatal gate: raise a request_aborted RunError when work must not continue."""
        if self.should_stop():
            raise RunError(REQUEST_ABORTED_MESSAGE, code=ErrorCode.REQUEST_ABORTED)
