import pytest

from studytimer.core.collaborators import CUE_REST_COMPLETE, CUE_SESSION_COMPLETE, CUE_STUDY_COMPLETE
from studytimer.core.errors import InvalidConfig
from studytimer.core.schedule import IntervalKind, Schedule, SessionConfig
from studytimer.core.session import SessionMode, SessionPhase


def test_start_sets_first_study_interval_and_arms_side_effects(harness) -> None:
    snapshot = harness.start(study=60, rest=30, budget=180)

    assert snapshot.phase == SessionPhase.STUDYING
    assert snapshot.kind == IntervalKind.STUDY
    assert snapshot.index == 1
    assert snapshot.remaining_seconds == 60
    assert snapshot.total_study_sessions == 3
    assert harness.clock.is_active
    assert harness.activity.updates == [(60, IntervalKind.STUDY, 1, 3)]
    assert harness.notifications.named("single") == [
        ("single", snapshot.session_id, 60, IntervalKind.STUDY, IntervalKind.REST)
    ]


def test_each_start_gets_fresh_session_id(harness) -> None:
    first = harness.start(study=60, rest=0, budget=60).session_id
    second = harness.start(study=60, rest=0, budget=60).session_id

    assert first != second
    assert ("cancel", first) in harness.notifications.calls


def test_start_rejects_invalid_schedule_without_touching_state(harness) -> None:
    broken = Schedule(config=SessionConfig(60, 0, 60), total_study_sessions=0)
    with pytest.raises(InvalidConfig):
        harness.controller.start(broken)
    with pytest.raises(InvalidConfig):
        harness.controller.start(Schedule(config=SessionConfig(60, -5, 60), total_study_sessions=1))

    assert harness.controller.snapshot().phase == SessionPhase.IDLE
    assert harness.notifications.calls == []
    assert harness.activity.updates == []
    assert not harness.clock.is_active


def test_full_cycle_with_rest_completes_once(harness) -> None:
    harness.start(study=2, rest=1, budget=6)
    assert harness.controller.schedule.total_study_sessions == 3

    harness.clock.fire(2)
    snap = harness.controller.snapshot()
    assert (snap.kind, snap.index, snap.remaining_seconds) == (IntervalKind.REST, 1, 1)

    harness.clock.fire(1)
    snap = harness.controller.snapshot()
    assert (snap.kind, snap.index, snap.remaining_seconds) == (IntervalKind.STUDY, 2, 2)

    harness.clock.fire(3)
    assert harness.controller.snapshot().index == 3

    harness.clock.fire(2)
    assert harness.controller.snapshot().phase == SessionPhase.IDLE
    assert [s.phase for s in harness.snapshots[-2:]] == [SessionPhase.COMPLETED, SessionPhase.IDLE]
    assert len(harness.notifications.named("completion")) == 1
    assert len(harness.completed) == 1
    assert harness.completed[0].index == 3
    assert harness.sound.cues == [
        CUE_STUDY_COMPLETE,
        CUE_REST_COMPLETE,
        CUE_STUDY_COMPLETE,
        CUE_REST_COMPLETE,
        CUE_STUDY_COMPLETE,
        CUE_SESSION_COMPLETE,
    ]
    assert not harness.clock.is_active

    harness.controller.tick()
    assert len(harness.notifications.named("completion")) == 1


def test_zero_rest_runs_study_intervals_back_to_back(harness) -> None:
    harness.start(study=60, rest=0, budget=180)

    harness.clock.fire(179)
    seen = {(s.kind, s.index) for s in harness.snapshots if s.phase != SessionPhase.IDLE}
    assert seen == {(IntervalKind.STUDY, 1), (IntervalKind.STUDY, 2), (IntervalKind.STUDY, 3)}

    harness.clock.fire(1)
    assert harness.controller.snapshot().phase == SessionPhase.IDLE
    assert all(s.kind != IntervalKind.REST for s in harness.snapshots)
    assert len(harness.completed) == 1


def test_study_before_skipped_rest_announces_next_study(harness) -> None:
    snapshot = harness.start(study=60, rest=0, budget=120)

    assert harness.notifications.named("single")[-1] == (
        "single", snapshot.session_id, 60, IntervalKind.STUDY, IntervalKind.STUDY
    )
    harness.clock.fire(60)
    assert harness.notifications.named("single")[-1] == (
        "single", snapshot.session_id, 60, IntervalKind.STUDY, None
    )


def test_activity_refreshes_every_ten_seconds(harness) -> None:
    harness.start(study=30, rest=5, budget=60)

    harness.clock.fire(25)

    assert [update[0] for update in harness.activity.updates] == [30, 20, 10]


def test_advance_is_ignored_while_transition_in_progress(harness) -> None:
    harness.start(study=15, rest=5, budget=45)
    nested = []

    def reenter(_cue: str) -> None:
        nested.append(harness.controller.advance())
        nested.append(harness.controller.force_advance_if_due())
        harness.controller.tick()

    harness.sound.on_play = reenter
    harness.clock.fire(15)

    snap = harness.controller.snapshot()
    assert nested == [False, False]
    assert (snap.kind, snap.index, snap.remaining_seconds) == (IntervalKind.REST, 1, 5)


def test_wake_from_current_session_finishes_due_interval(harness) -> None:
    snapshot = harness.start(study=15, rest=5, budget=45)
    harness.clock.fire(13)

    assert harness.controller.on_wake_delivered(snapshot.session_id) is False
    harness.clock.fire(1)
    assert harness.controller.on_wake_delivered(snapshot.session_id) is True
    assert harness.controller.snapshot().kind == IntervalKind.REST

    harness.clock.fire(1)
    assert harness.controller.snapshot().remaining_seconds == 4


def test_stale_wake_after_stop_changes_nothing(harness) -> None:
    old = harness.start(study=15, rest=5, budget=45).session_id
    harness.controller.stop()
    calls_before = list(harness.notifications.calls)

    assert harness.controller.on_wake_delivered(old) is False
    assert harness.controller.snapshot().phase == SessionPhase.IDLE

    current = harness.start(study=15, rest=5, budget=45).session_id
    harness.clock.fire(14)
    assert harness.controller.on_wake_delivered(old) is False
    snap = harness.controller.snapshot()
    assert (snap.session_id, snap.kind, snap.remaining_seconds) == (current, IntervalKind.STUDY, 1)
    assert ("cancel", old) in calls_before


def test_pause_resume_preserves_remaining_and_rearms_once(harness) -> None:
    sid = harness.start(study=60, rest=10, budget=120).session_id
    harness.clock.fire(7)

    assert harness.controller.pause() is True
    assert not harness.clock.is_active
    assert harness.notifications.calls[-1] == ("cancel", sid)
    assert harness.controller.snapshot().phase == SessionPhase.STUDY_PAUSED
    harness.clock.fire(5)
    harness.controller.tick()
    singles_before = len(harness.notifications.named("single"))

    assert harness.controller.resume() is True

    singles = harness.notifications.named("single")
    assert len(singles) == singles_before + 1
    assert singles[-1] == ("single", sid, 53, IntervalKind.STUDY, IntervalKind.REST)
    assert harness.controller.snapshot().remaining_seconds == 53
    assert harness.clock.is_active


def test_pause_and_resume_reject_invalid_states(harness) -> None:
    assert harness.controller.pause() is False
    assert harness.controller.resume() is False

    harness.start(study=60, rest=0, budget=60)
    assert harness.controller.resume() is False
    assert harness.controller.pause() is True
    assert harness.controller.pause() is False


def test_stop_resets_and_cleans_up_scoped_to_session(harness) -> None:
    sid = harness.start(study=60, rest=0, budget=60).session_id

    snapshot = harness.controller.stop()

    assert snapshot.phase == SessionPhase.IDLE
    assert snapshot.session_id is None
    assert harness.activity.ends == 1
    assert ("cancel", sid) in harness.notifications.calls
    assert harness.notifications.named("cancel_all") == []
    assert not harness.clock.is_active


def test_collaborator_failures_do_not_stop_the_timer(harness) -> None:
    harness.notifications.fail_on = {"single", "cancel"}
    def broken_audio(_cue: str) -> None:
        raise OSError("no audio device")

    harness.sound.on_play = broken_audio

    harness.start(study=15, rest=5, budget=30)
    harness.clock.fire(15)

    snap = harness.controller.snapshot()
    assert (snap.kind, snap.remaining_seconds) == (IntervalKind.REST, 5)
    harness.controller.stop()
    assert harness.controller.snapshot().phase == SessionPhase.IDLE


def test_backgrounding_hands_remaining_schedule_to_batch(harness) -> None:
    sid = harness.start(study=60, rest=30, budget=300).session_id
    harness.clock.fire(50)

    harness.controller.set_mode(SessionMode.BACKGROUNDED, now=100.0)

    assert not harness.clock.is_active
    assert harness.notifications.calls[-1] == ("batch", sid, 10, IntervalKind.STUDY, 1, 5, 60, 30)


def test_foregrounding_cancels_batch_and_catches_up(harness) -> None:
    sid = harness.start(study=15, rest=5, budget=45).session_id
    harness.controller.set_mode(SessionMode.BACKGROUNDED, now=0.0)
    cues_before = list(harness.sound.cues)

    snapshot = harness.controller.set_mode(SessionMode.FOREGROUND_ACTIVE, now=23.4)

    assert (snapshot.kind, snapshot.index, snapshot.remaining_seconds) == (IntervalKind.STUDY, 2, 12)
    assert harness.sound.cues == cues_before
    assert ("cancel", sid) in harness.notifications.calls
    assert harness.notifications.calls[-1] == ("single", sid, 12, IntervalKind.STUDY, IntervalKind.REST)
    assert harness.clock.is_active


def test_session_can_complete_while_backgrounded(harness) -> None:
    harness.start(study=15, rest=0, budget=30)
    harness.controller.set_mode(SessionMode.BACKGROUNDED, now=0.0)

    snapshot = harness.controller.set_mode(SessionMode.FOREGROUND_ACTIVE, now=40.0)

    assert snapshot.phase == SessionPhase.IDLE
    assert len(harness.notifications.named("completion")) == 1
    assert not harness.clock.is_active


def test_pause_in_background_keeps_elapsed_time(harness) -> None:
    harness.start(study=60, rest=0, budget=60)
    harness.controller.set_mode(SessionMode.BACKGROUNDED, now=0.0)
    harness.now[0] = 20.0

    assert harness.controller.pause() is True
    harness.controller.set_mode(SessionMode.FOREGROUND_ACTIVE, now=500.0)

    snapshot = harness.controller.snapshot()
    assert snapshot.remaining_seconds == 40
    assert snapshot.is_paused
    assert not harness.clock.is_active


def test_configure_clamps_user_input(harness) -> None:
    schedule = harness.controller.configure(5, -10, 0)

    assert schedule.study_seconds == 15
    assert schedule.rest_seconds == 0
    assert schedule.total_study_sessions == 1
    assert harness.controller.start().remaining_seconds == 15


def test_wake_in_background_counts_elapsed_time_once(harness) -> None:
    sid = harness.start(study=15, rest=5, budget=45).session_id
    harness.clock.fire(14)
    harness.controller.set_mode(SessionMode.BACKGROUNDED, now=0.0)

    harness.now[0] = 1.0
    assert harness.controller.on_wake_delivered(sid) is True
    snap = harness.controller.snapshot()
    assert (snap.kind, snap.remaining_seconds) == (IntervalKind.REST, 5)

    snapshot = harness.controller.set_mode(SessionMode.FOREGROUND_ACTIVE, now=3.0)
    assert (snapshot.kind, snapshot.remaining_seconds) == (IntervalKind.REST, 3)


def test_early_wake_in_background_does_not_skip_time(harness) -> None:
    sid = harness.start(study=60, rest=0, budget=120).session_id
    harness.controller.set_mode(SessionMode.BACKGROUNDED, now=0.0)

    harness.now[0] = 10.5
    assert harness.controller.on_wake_delivered(sid) is False
    assert harness.controller.snapshot().remaining_seconds == 50

    snapshot = harness.controller.set_mode(SessionMode.FOREGROUND_ACTIVE, now=20.5)
    assert (snapshot.index, snapshot.remaining_seconds) == (1, 40)


def test_wake_in_background_at_interval_end_reschedules_batch(harness) -> None:
    sid = harness.start(study=60, rest=30, budget=120).session_id
    harness.controller.set_mode(SessionMode.BACKGROUNDED, now=0.0)

    harness.now[0] = 59.0
    assert harness.controller.on_wake_delivered(sid) is True

    snap = harness.controller.snapshot()
    assert (snap.kind, snap.remaining_seconds) == (IntervalKind.REST, 30)
    assert harness.notifications.calls[-1] == ("batch", sid, 30, IntervalKind.REST, 1, 2, 60, 30)
    snapshot = harness.controller.set_mode(SessionMode.FOREGROUND_ACTIVE, now=69.0)
    assert (snapshot.kind, snapshot.remaining_seconds) == (IntervalKind.REST, 20)
