from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

import pytest

from studytimer.core.collaborators import ActivityPresenter, IntervalClock, NotificationScheduler, SoundPlayer
from studytimer.core.schedule import IntervalKind, SessionConfig, compute_schedule
from studytimer.core.session import SessionController, SessionSnapshot


class ManualClock(IntervalClock):
    def __init__(self) -> None:
        self.on_tick: Callable[[], None] | None = None
        self.active = False
        self.starts = 0

    @property
    def is_active(self) -> bool:
        return self.active

    def start(self, on_tick: Callable[[], None]) -> None:
        self.on_tick = on_tick
        self.active = True
        self.starts += 1

    def stop(self) -> None:
        self.active = False

    def fire(self, times: int = 1) -> None:
        for _ in range(times):
            if self.active and self.on_tick is not None:
                self.on_tick()


class RecordingNotifications(NotificationScheduler):
    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.fail_on: set[str] = set()

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if name in self.fail_on:
            raise RuntimeError(f"{name} unavailable")

    def schedule_single(self, session_id, after_seconds, kind, next_kind) -> None:
        self._record("single", session_id, after_seconds, kind, next_kind)

    def schedule_batch(self, session_id, remaining_seconds, kind, index, total_study_sessions, study_seconds, rest_seconds) -> None:
        self._record("batch", session_id, remaining_seconds, kind, index, total_study_sessions, study_seconds, rest_seconds)

    def send_completion(self, session_id) -> None:
        self._record("completion", session_id)

    def cancel(self, session_id) -> None:
        self._record("cancel", session_id)

    def cancel_all(self) -> None:
        self._record("cancel_all")

    def named(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]


class RecordingActivity(ActivityPresenter):
    def __init__(self) -> None:
        self.updates: list[tuple[int, IntervalKind, int, int]] = []
        self.ends = 0

    def present_or_update(self, remaining_seconds, kind, current_index, total_sessions) -> None:
        self.updates.append((remaining_seconds, kind, current_index, total_sessions))

    def end(self) -> None:
        self.ends += 1


class RecordingSound(SoundPlayer):
    def __init__(self) -> None:
        self.cues: list[str] = []
        self.on_play: Callable[[str], None] | None = None

    def play(self, cue: str) -> None:
        self.cues.append(cue)
        if self.on_play is not None:
            self.on_play(cue)


@dataclass
class Harness:
    controller: SessionController
    clock: ManualClock
    notifications: RecordingNotifications
    activity: RecordingActivity
    sound: RecordingSound
    now: list[float] = field(default_factory=lambda: [0.0])
    snapshots: list[SessionSnapshot] = field(default_factory=list)
    completed: list[SessionSnapshot] = field(default_factory=list)

    def start(self, study: int, rest: int, budget: int) -> SessionSnapshot:
        return self.controller.start(compute_schedule(SessionConfig(study, rest, budget)))


@pytest.fixture
def harness() -> Harness:
    clock = ManualClock()
    notifications = RecordingNotifications()
    activity = RecordingActivity()
    sound = RecordingSound()
    now = [0.0]
    controller = SessionController(clock, notifications, activity, sound, monotonic=lambda: now[0])
    h = Harness(controller, clock, notifications, activity, sound, now=now)
    controller.set_on_change(h.snapshots.append)
    controller.set_on_completed(h.completed.append)
    return h


@pytest.fixture(scope="session")
def qapp():
    from PyQt6.QtCore import QCoreApplication

    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def build_controller():
    """Controller wired to a real notification scheduler and fake clock, sound and activity."""

    def build(notifications: NotificationScheduler, now: list[float]) -> tuple[SessionController, ManualClock]:
        clock = ManualClock()
        controller = SessionController(
            clock, notifications, RecordingActivity(), RecordingSound(), monotonic=lambda: now[0]
        )
        return controller, clock

    return build
