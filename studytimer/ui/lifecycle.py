from __future__ import annotations

import logging
from typing import Callable

from PyQt6.QtCore import Qt


logger = logging.getLogger(__name__)

BACKGROUND_STATES = {Qt.ApplicationState.ApplicationHidden, Qt.ApplicationState.ApplicationSuspended}


def is_foreground(state: Qt.ApplicationState, minimized: bool) -> bool:
    return not minimized and state not in BACKGROUND_STATES


class LifecycleMonitor:
    """Derives foreground/background from both the app state and the window state.

    ``on_change`` only fires when the combined value flips, so a focus loss that
    follows a minimize does not bring the session back to the foreground.
    """

    def __init__(
        self,
        on_change: Callable[[bool], None],
        is_minimized: Callable[[], bool],
        state: Qt.ApplicationState = Qt.ApplicationState.ApplicationActive,
    ) -> None:
        self._on_change = on_change
        self._is_minimized = is_minimized
        self._state = state
        self._foreground = True

    @property
    def foreground(self) -> bool:
        return self._foreground

    def on_application_state(self, state: Qt.ApplicationState) -> None:
        self._state = state
        self.refresh()

    def on_window_state(self) -> None:
        self.refresh()

    def refresh(self) -> None:
        foreground = is_foreground(self._state, self._is_minimized())
        if foreground == self._foreground:
            return
        self._foreground = foreground
        logger.debug("Foreground changed: %s (state=%s)", foreground, self._state.name)
        self._on_change(foreground)
