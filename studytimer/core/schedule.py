from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from studytimer.core.errors import InvalidConfig


MIN_STUDY_SECONDS = 15
MAX_STUDY_SECONDS = 60 * 60
MAX_REST_SECONDS = 30 * 60
MIN_BUDGET_SECONDS = 1
MAX_BUDGET_SECONDS = 8 * 60 * 60

DEFAULT_STUDY_SECONDS = 25 * 60
DEFAULT_REST_SECONDS = 5 * 60
DEFAULT_BUDGET_SECONDS = 4 * 60 * 60


class IntervalKind(str, Enum):
    STUDY = "Study"
    REST = "Rest"

    @property
    def next(self) -> IntervalKind:
        return IntervalKind.REST if self is IntervalKind.STUDY else IntervalKind.STUDY


@dataclass(frozen=True)
class SessionConfig:
    study_seconds: int = DEFAULT_STUDY_SECONDS
    rest_seconds: int = DEFAULT_REST_SECONDS
    total_budget_seconds: int = DEFAULT_BUDGET_SECONDS

    @classmethod
    def clamped(cls, study_seconds: int, rest_seconds: int, total_budget_seconds: int) -> SessionConfig:
        """Builds a config from raw user input, pulling every value into range."""
        return cls(
            study_seconds=_clamp(int(study_seconds), MIN_STUDY_SECONDS, MAX_STUDY_SECONDS),
            rest_seconds=_clamp(int(rest_seconds), 0, MAX_REST_SECONDS),
            total_budget_seconds=_clamp(int(total_budget_seconds), MIN_BUDGET_SECONDS, MAX_BUDGET_SECONDS),
        )


@dataclass(frozen=True)
class Schedule:
    config: SessionConfig
    total_study_sessions: int

    @property
    def study_seconds(self) -> int:
        return self.config.study_seconds

    @property
    def rest_seconds(self) -> int:
        return self.config.rest_seconds

    @property
    def has_rest(self) -> bool:
        return self.config.rest_seconds > 0

    @property
    def total_intervals(self) -> int:
        if not self.has_rest:
            return self.total_study_sessions
        return self.total_study_sessions * 2 - 1

    @property
    def total_study_seconds(self) -> int:
        return self.total_study_sessions * self.study_seconds

    def duration_of(self, kind: IntervalKind) -> int:
        return self.study_seconds if kind is IntervalKind.STUDY else self.rest_seconds

    def next_kind_after(self, kind: IntervalKind, index: int) -> IntervalKind | None:
        """Kind of the interval following ``kind`` at ``index``; ``None`` after the last study."""
        if kind is IntervalKind.REST:
            return IntervalKind.STUDY
        if index >= self.total_study_sessions:
            return None
        return IntervalKind.REST if self.has_rest else IntervalKind.STUDY


def compute_schedule(config: SessionConfig) -> Schedule:
    if config.study_seconds <= 0:
        raise InvalidConfig("Study duration must be positive")
    sessions = max(1, config.total_budget_seconds // config.study_seconds)
    return Schedule(config=config, total_study_sessions=sessions)


def validate_schedule(schedule: Schedule) -> None:
    if schedule.total_study_sessions < 1:
        raise InvalidConfig("Schedule must contain at least one study session")
    if schedule.study_seconds <= 0:
        raise InvalidConfig("Study duration must be positive")
    if schedule.rest_seconds < 0:
        raise InvalidConfig("Rest duration cannot be negative")
    if schedule.config.total_budget_seconds <= 0:
        raise InvalidConfig("Total study budget must be positive")


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))
