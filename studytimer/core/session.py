from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from studytimer.core.collaborators import (
    CUE_REST_COMPLETE,
    CUE_SESSION_COMPLETE,
    CUE_STUDY_COMPLETE,
    ActivityPresenter,
    IntervalClock,
    NotificationScheduler,
    SoundPlayer,
)
from studytimer.core.errors import SideEffectFailure, StaleSession
from studytimer.core.formatting import format_clock
from studytimer.core.schedule import (
    IntervalKind,
    Schedule,
    SessionConfig,
    compute_schedule,
    validate_schedule,
)


logger = logging.getLogger(__name__)

ACTIVITY_REFRESH_SECONDS = 10


class SessionPhase(str, Enum):
    IDLE = "idle"
    STUDYING = "studying"
    RESTING = "resting"
    STUDY_PAUSED = "study_paused"
    REST_PAUSED = "rest_paused"
    COMPLETED = "completed"


class SessionMode(str, Enum):
    FOREGROUND_ACTIVE = "foreground_active"
    BACKGROUNDED = "backgrounded"


@dataclass(frozen=True)
class SessionSnapshot:
    session_id: str | None
    phase: SessionPhase
    kind: IntervalKind
    index: int
    total_study_sessions: int
    remaining_seconds: int
    interval_seconds: int
    is_running: bool
    is_paused: bool

    @property
    def progress(self) -> float:
        if self.interval_seconds <= 0:
            return 0.0
        done = (self.interval_seconds - self.remaining_seconds) / self.interval_seconds
        return max(0.0, min(1.0, done))

    @property
    def formatted_time(self) -> str:
        return format_clock(self.remaining_seconds)


@dataclass
class SessionState:
    session_id: str
    kind: IntervalKind
    index: int
    remaining_seconds: int
    is_running: bool = True
    is_paused: bool = False
    is_transitioning: bool = False
    completed: bool = False


class SessionController:
    """Single owner of the active study session.

    All mutating calls are serialized through one re-entrant lock. A collaborator
    that calls back into the controller from inside a transition re-enters the
    lock and is stopped by ``is_transitioning``; callbacks carrying an old session
    id are dropped. Collaborator failures are logged and never reach the caller.
    """

    def __init__(
        self,
        clock: IntervalClock,
        notifications: NotificationScheduler,
        activity: ActivityPresenter,
        sound: SoundPlayer,
        *,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._clock = clock
        self._notifications = notifications
        self._activity = activity
        self._sound = sound
        self._monotonic = monotonic
        self._lock = threading.RLock()

        self._schedule: Schedule = compute_schedule(SessionConfig())
        self._state: SessionState | None = None
        self._mode = SessionMode.FOREGROUND_ACTIVE
        self._backgrounded_at: float | None = None
        self._catching_up = False

        self._on_change: Callable[[SessionSnapshot], None] | None = None
        self._on_completed: Callable[[SessionSnapshot], None] | None = None

    # ----- Observers -----
    def set_on_change(self, fn: Callable[[SessionSnapshot], None] | None) -> None:
        self._on_change = fn

    def set_on_completed(self, fn: Callable[[SessionSnapshot], None] | None) -> None:
        self._on_completed = fn

    # ----- Read-only view -----
    @property
    def schedule(self) -> Schedule:
        return self._schedule

    @property
    def mode(self) -> SessionMode:
        return self._mode

    @property
    def session_id(self) -> str | None:
        state = self._state
        return state.session_id if state else None

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return self._snapshot_locked()

    # ----- Inbound API -----
    def configure(self, study_seconds: int, rest_seconds: int, total_budget_seconds: int) -> Schedule:
        schedule = compute_schedule(SessionConfig.clamped(study_seconds, rest_seconds, total_budget_seconds))
        with self._lock:
            self._schedule = schedule
        return schedule

    def start(self, schedule: Schedule | None = None) -> SessionSnapshot:
        with self._lock:
            schedule = schedule or self._schedule
            validate_schedule(schedule)
            if self._state is not None:
                self._stop_locked()

            self._schedule = schedule
            self._state = SessionState(
                session_id=uuid.uuid4().hex,
                kind=IntervalKind.STUDY,
                index=1,
                remaining_seconds=schedule.study_seconds,
            )
            logger.info(
                "Session started: id=%s study=%ss rest=%ss budget=%ss sessions=%s",
                self._state.session_id[:8],
                schedule.study_seconds,
                schedule.rest_seconds,
                schedule.config.total_budget_seconds,
                schedule.total_study_sessions,
            )
            self._run_clock_locked()
            self._update_activity_locked()
            self._schedule_notification_locked()
            self._emit_change_locked()
            return self._snapshot_locked()

    def tick(self) -> SessionSnapshot:
        with self._lock:
            self._tick_locked()
            return self._snapshot_locked()

    def pause(self) -> bool:
        with self._lock:
            if self._mode is SessionMode.BACKGROUNDED:
                self._catch_up_locked(self._monotonic())
            state = self._state
            if state is None or not state.is_running or state.is_paused:
                logger.debug("Pause ignored: no running session")
                return False
            state.is_paused = True
            self._clock.stop()
            self._side_effect("notifications", self._notifications.cancel, state.session_id)
            logger.info("Session paused: id=%s remaining=%ss", state.session_id[:8], state.remaining_seconds)
            self._emit_change_locked()
            return True

    def resume(self) -> bool:
        with self._lock:
            state = self._state
            if state is None or not state.is_running or not state.is_paused:
                logger.debug("Resume ignored: no paused session")
                return False
            state.is_paused = False
            self._run_clock_locked()
            self._schedule_notification_locked()
            logger.info("Session resumed: id=%s remaining=%ss", state.session_id[:8], state.remaining_seconds)
            self._emit_change_locked()
            return True

    def stop(self) -> SessionSnapshot:
        with self._lock:
            self._stop_locked()
            return self._snapshot_locked()

    def advance(self) -> bool:
        """Finishes the current interval. Returns False when nothing changed."""
        with self._lock:
            return self._advance_locked()

    def force_advance_if_due(self) -> bool:
        with self._lock:
            state = self._state
            if state is None or not state.is_running or state.is_paused or state.is_transitioning:
                return False
            before = (state.session_id, state.kind, state.index)
            if self._mode is SessionMode.BACKGROUNDED:
                self._sync_background_locked()
            state = self._state
            if state is None:
                return True
            moved = (state.session_id, state.kind, state.index) != before
            if state.remaining_seconds <= 1:
                moved = self._advance_locked() or moved
                if self._mode is SessionMode.BACKGROUNDED and self._state is not None:
                    self._backgrounded_at = self._monotonic()
            elif moved:
                self._emit_change_locked()
            return moved

    def on_wake_delivered(self, session_id: str | None) -> bool:
        """Entry point for delivered or tapped notifications."""
        with self._lock:
            try:
                self._require_current_locked(session_id)
            except StaleSession as exc:
                logger.debug("Dropping wake-up: %s", exc)
                return False
            return self.force_advance_if_due()

    def set_mode(self, mode: SessionMode, now: float | None = None) -> SessionSnapshot:
        with self._lock:
            if mode is self._mode:
                return self._snapshot_locked()
            if now is None:
                now = self._monotonic()
            self._mode = mode
            logger.info("Mode changed: %s", mode.value)

            state = self._state
            if mode is SessionMode.BACKGROUNDED:
                self._clock.stop()
                if state is not None and not state.is_paused:
                    self._backgrounded_at = now
                    self._schedule_notification_locked()
            elif state is not None:
                self._side_effect("notifications", self._notifications.cancel, state.session_id)
                self._catch_up_locked(now)
                state = self._state
                if state is not None and not state.is_paused:
                    self._run_clock_locked()
                    self._update_activity_locked()
                    self._schedule_notification_locked()
            self._emit_change_locked()
            return self._snapshot_locked()

    # ----- State machine internals -----
    def _tick_locked(self) -> None:
        state = self._state
        if state is None or not state.is_running or state.is_paused:
            return
        if state.remaining_seconds > 0:
            state.remaining_seconds -= 1
        if state.remaining_seconds == 0:
            if not state.is_transitioning:
                self._advance_locked()
            return
        if self._catching_up:
            return
        if state.remaining_seconds % ACTIVITY_REFRESH_SECONDS == 0:
            self._update_activity_locked()
        self._emit_change_locked()

    def _advance_locked(self) -> bool:
        state = self._state
        if state is None or not state.is_running or state.is_transitioning:
            return False
        state.is_transitioning = True
        try:
            schedule = self._schedule
            finished = state.kind
            logger.info(
                "Interval finished: id=%s kind=%s session=%s/%s",
                state.session_id[:8],
                finished.value,
                state.index,
                schedule.total_study_sessions,
            )
            if finished is IntervalKind.STUDY:
                self._play_locked(CUE_STUDY_COMPLETE)
                if state.index >= schedule.total_study_sessions:
                    self._complete_locked(state)
                    return True
                if schedule.has_rest:
                    state.kind = IntervalKind.REST
                    state.remaining_seconds = schedule.rest_seconds
                else:
                    state.index += 1
                    state.remaining_seconds = schedule.study_seconds
            else:
                self._play_locked(CUE_REST_COMPLETE)
                state.index += 1
                state.kind = IntervalKind.STUDY
                state.remaining_seconds = schedule.study_seconds

            logger.info(
                "Interval started: id=%s kind=%s session=%s remaining=%ss",
                state.session_id[:8],
                state.kind.value,
                state.index,
                state.remaining_seconds,
            )
            if not self._catching_up:
                self._update_activity_locked()
                self._schedule_notification_locked()
                self._emit_change_locked()
            return True
        finally:
            state.is_transitioning = False

    def _complete_locked(self, state: SessionState) -> None:
        self._play_locked(CUE_SESSION_COMPLETE)
        state.completed = True
        state.is_running = False
        completed = self._snapshot_locked()
        logger.info("Session completed: id=%s sessions=%s", state.session_id[:8], state.index)
        self._call_observer(self._on_change, completed)
        self._stop_locked()
        self._side_effect("notifications", self._notifications.send_completion, state.session_id)
        self._call_observer(self._on_completed, completed)

    def _stop_locked(self) -> None:
        state = self._state
        self._state = None
        self._backgrounded_at = None
        self._clock.stop()
        self._side_effect("activity", self._activity.end)
        if state is not None:
            self._side_effect("notifications", self._notifications.cancel, state.session_id)
            if not state.completed:
                logger.info("Session stopped: id=%s", state.session_id[:8])
        self._emit_change_locked()

    def _catch_up_locked(self, now: float) -> None:
        started = self._backgrounded_at
        self._backgrounded_at = None
        if started is None:
            return
        elapsed = int(max(0.0, now - started))
        logger.debug("Catching up %ss spent in background", elapsed)
        self._catching_up = True
        try:
            for _ in range(elapsed):
                if self._state is None:
                    break
                self._tick_locked()
        finally:
            self._catching_up = False

    def _sync_background_locked(self) -> None:
        """Applies the whole seconds spent in background and keeps counting from there."""
        started = self._backgrounded_at
        if started is None:
            return
        elapsed = int(max(0.0, self._monotonic() - started))
        self._catch_up_locked(started + elapsed)
        if self._state is not None:
            self._backgrounded_at = started + elapsed

    def _run_clock_locked(self) -> None:
        if self._mode is SessionMode.FOREGROUND_ACTIVE:
            self._clock.start(self.tick)
        else:
            self._backgrounded_at = self._monotonic()

    def _require_current_locked(self, session_id: str | None) -> SessionState:
        state = self._state
        if state is None or session_id is None or state.session_id != session_id:
            raise StaleSession(session_id, state.session_id if state else None)
        return state

    def _snapshot_locked(self) -> SessionSnapshot:
        schedule = self._schedule
        state = self._state
        if state is None:
            return SessionSnapshot(
                session_id=None,
                phase=SessionPhase.IDLE,
                kind=IntervalKind.STUDY,
                index=1,
                total_study_sessions=schedule.total_study_sessions,
                remaining_seconds=0,
                interval_seconds=schedule.study_seconds,
                is_running=False,
                is_paused=False,
            )
        if state.completed:
            phase = SessionPhase.COMPLETED
        elif state.kind is IntervalKind.STUDY:
            phase = SessionPhase.STUDY_PAUSED if state.is_paused else SessionPhase.STUDYING
        else:
            phase = SessionPhase.REST_PAUSED if state.is_paused else SessionPhase.RESTING
        return SessionSnapshot(
            session_id=state.session_id,
            phase=phase,
            kind=state.kind,
            index=state.index,
            total_study_sessions=schedule.total_study_sessions,
            remaining_seconds=state.remaining_seconds,
            interval_seconds=schedule.duration_of(state.kind),
            is_running=state.is_running,
            is_paused=state.is_paused,
        )

    # ----- Side effects -----
    def _update_activity_locked(self) -> None:
        state = self._state
        if state is None:
            return
        self._side_effect(
            "activity",
            self._activity.present_or_update,
            state.remaining_seconds,
            state.kind,
            state.index,
            self._schedule.total_study_sessions,
        )

    def _schedule_notification_locked(self) -> None:
        state = self._state
        if state is None or state.is_paused:
            return
        schedule = self._schedule
        if self._mode is SessionMode.FOREGROUND_ACTIVE:
            self._side_effect(
                "notifications",
                self._notifications.schedule_single,
                state.session_id,
                state.remaining_seconds,
                state.kind,
                schedule.next_kind_after(state.kind, state.index),
            )
        else:
            self._side_effect(
                "notifications",
                self._notifications.schedule_batch,
                state.session_id,
                state.remaining_seconds,
                state.kind,
                state.index,
                schedule.total_study_sessions,
                schedule.study_seconds,
                schedule.rest_seconds,
            )

    def _play_locked(self, cue: str) -> None:
        if self._catching_up:
            return
        self._side_effect("sound", self._sound.play, cue)

    def _emit_change_locked(self) -> None:
        self._call_observer(self._on_change, self._snapshot_locked())

    def _call_observer(self, fn: Callable[[SessionSnapshot], None] | None, snapshot: SessionSnapshot) -> None:
        if fn is not None:
            self._side_effect("observer", fn, snapshot)

    def _side_effect(self, collaborator: str, fn: Callable[..., Any], *args: Any) -> bool:
        try:
            fn(*args)
        except Exception as exc:
            logger.warning("%s", SideEffectFailure(collaborator, exc), exc_info=True)
            return False
        return True
