from __future__ import annotations

"""Interfaces the session controller drives; implementations live in services/ and ui/."""

from abc import ABC, abstractmethod
from typing import Callable

from studytimer.core.schedule import IntervalKind


CUE_STUDY_COMPLETE = "doneit"
CUE_REST_COMPLETE = "bell"
CUE_SESSION_COMPLETE = "doneit"


class IntervalClock(ABC):
    @abstractmethod
    def start(self, on_tick: Callable[[], None]) -> None:
        """Begin calling ``on_tick`` once per second; restarting replaces the callback."""

    @abstractmethod
    def stop(self) -> None:
        """Suspend ticking. Safe to call when already stopped."""

    @property
    @abstractmethod
    def is_active(self) -> bool:
        ...


class NotificationScheduler(ABC):
    @abstractmethod
    def schedule_single(
        self,
        session_id: str,
        after_seconds: int,
        kind: IntervalKind,
        next_kind: IntervalKind | None,
    ) -> None:
        """Arm one wake-up for the session, replacing the previous one. ``next_kind=None`` means completion."""

    @abstractmethod
    def schedule_batch(
        self,
        session_id: str,
        remaining_seconds: int,
        kind: IntervalKind,
        index: int,
        total_study_sessions: int,
        study_seconds: int,
        rest_seconds: int,
    ) -> None:
        """Arm wake-ups for the remaining schedule ahead of time."""

    @abstractmethod
    def send_completion(self, session_id: str) -> None:
        ...

    @abstractmethod
    def cancel(self, session_id: str) -> None:
        """Remove pending and delivered notifications of one session only."""

    @abstractmethod
    def cancel_all(self) -> None:
        """Emergency path for app termination."""


class ActivityPresenter(ABC):
    @abstractmethod
    def present_or_update(
        self,
        remaining_seconds: int,
        kind: IntervalKind,
        current_index: int,
        total_sessions: int,
    ) -> None:
        ...

    @abstractmethod
    def end(self) -> None:
        ...


class SoundPlayer(ABC):
    @abstractmethod
    def play(self, cue: str) -> None:
        """Start playing a cue and return immediately."""
