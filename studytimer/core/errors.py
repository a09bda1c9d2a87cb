from __future__ import annotations


class TimerError(Exception):
    """Base class for interval timer errors."""


class InvalidConfig(TimerError, ValueError):
    """Durations or budget cannot produce a runnable schedule."""


class StaleSession(TimerError):
    """A callback referenced a session id that is no longer current."""

    def __init__(self, session_id: str | None, current_id: str | None) -> None:
        super().__init__(f"session {session_id!r} is stale (current: {current_id!r})")
        self.session_id = session_id
        self.current_id = current_id


class SideEffectFailure(TimerError):
    """A notification, activity or sound collaborator failed."""

    def __init__(self, collaborator: str, original: BaseException) -> None:
        super().__init__(f"{collaborator} failed: {original!r}")
        self.collaborator = collaborator
        self.original = original
