from __future__ import annotations

import logging
from typing import Any

from PyQt6.QtCore import QObject, pyqtSignal

from studytimer.core.schedule import (
    DEFAULT_BUDGET_SECONDS,
    DEFAULT_REST_SECONDS,
    DEFAULT_STUDY_SECONDS,
    Schedule,
    SessionConfig,
)
from studytimer.core.session import SessionController, SessionMode, SessionSnapshot
from studytimer.data.storage import Storage


logger = logging.getLogger(__name__)

SETTING_STUDY = "study_seconds"
SETTING_REST = "rest_seconds"
SETTING_BUDGET = "total_budget_seconds"


class AppState(QObject):
    """Bridges the session controller to Qt widgets and persists the configuration."""

    snapshot_changed = pyqtSignal(object)
    schedule_changed = pyqtSignal(object)
    session_completed = pyqtSignal(object)
    settings_changed = pyqtSignal(str, object)

    def __init__(self, controller: SessionController) -> None:
        super().__init__()
        self.controller = controller
        self.config = SessionConfig()
        self._storage: Storage | None = None
        controller.set_on_change(self.snapshot_changed.emit)
        controller.set_on_completed(self.session_completed.emit)

    @property
    def schedule(self) -> Schedule:
        return self.controller.schedule

    @property
    def snapshot(self) -> SessionSnapshot:
        return self.controller.snapshot()

    def load_from_storage(self, storage: Storage) -> None:
        self._storage = storage
        self.configure(
            _as_int(storage.get_setting(SETTING_STUDY), DEFAULT_STUDY_SECONDS),
            _as_int(storage.get_setting(SETTING_REST), DEFAULT_REST_SECONDS),
            _as_int(storage.get_setting(SETTING_BUDGET), DEFAULT_BUDGET_SECONDS),
        )

    def configure(self, study_seconds: int, rest_seconds: int, total_budget_seconds: int) -> Schedule:
        schedule = self.controller.configure(study_seconds, rest_seconds, total_budget_seconds)
        self.config = schedule.config
        self._save_setting(SETTING_STUDY, self.config.study_seconds)
        self._save_setting(SETTING_REST, self.config.rest_seconds)
        self._save_setting(SETTING_BUDGET, self.config.total_budget_seconds)
        self.schedule_changed.emit(schedule)
        return schedule

    def start(self) -> SessionSnapshot:
        return self.controller.start()

    def pause(self) -> bool:
        return self.controller.pause()

    def resume(self) -> bool:
        return self.controller.resume()

    def toggle_pause(self) -> bool:
        if self.controller.snapshot().is_paused:
            return self.resume()
        return self.pause()

    def stop(self) -> SessionSnapshot:
        return self.controller.stop()

    def set_foreground(self, active: bool) -> None:
        mode = SessionMode.FOREGROUND_ACTIVE if active else SessionMode.BACKGROUNDED
        self.controller.set_mode(mode)

    def _save_setting(self, key: str, value: Any) -> None:
        if self._storage is None:
            return
        if self._storage.get_setting(key) == value:
            return
        self._storage.set_setting(key, value)
        self.settings_changed.emit(key, value)


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.debug("Ignoring malformed setting value %r", value)
        return default
