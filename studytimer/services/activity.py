from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from studytimer.core.collaborators import ActivityPresenter
from studytimer.core.formatting import format_clock
from studytimer.core.schedule import IntervalKind


logger = logging.getLogger(__name__)

KIND_ICONS = {IntervalKind.STUDY: "📚", IntervalKind.REST: "☕"}


class ActivityTarget(Protocol):
    def setToolTip(self, text: str) -> None: ...  # noqa: N802

    def show(self) -> None: ...

    def hide(self) -> None: ...


@dataclass(frozen=True)
class ActivityContent:
    remaining_seconds: int
    kind: IntervalKind
    current_index: int
    total_sessions: int

    @property
    def formatted_time(self) -> str:
        return format_clock(self.remaining_seconds)

    @property
    def title(self) -> str:
        return f"{KIND_ICONS[self.kind]} {self.kind.value} {self.formatted_time}"

    @property
    def subtitle(self) -> str:
        return f"Session {self.current_index} of {self.total_sessions}"


class TrayActivityPresenter(ActivityPresenter):
    """Out-of-app progress shown through a tray icon tooltip."""

    def __init__(self, target: ActivityTarget) -> None:
        self._target = target
        self.content: ActivityContent | None = None

    @property
    def is_active(self) -> bool:
        return self.content is not None

    def present_or_update(
        self,
        remaining_seconds: int,
        kind: IntervalKind,
        current_index: int,
        total_sessions: int,
    ) -> None:
        content = ActivityContent(remaining_seconds, kind, current_index, total_sessions)
        if self.content is None:
            self._target.show()
            logger.debug("Activity started: %s", content.title)
        self.content = content
        self._target.setToolTip(f"{content.title}\n{content.subtitle}")

    def end(self) -> None:
        if self.content is None:
            return
        self.content = None
        self._target.setToolTip("")
        self._target.hide()
        logger.debug("Activity ended")
