from __future__ import annotations

from typing import Callable

from PyQt6.QtCore import QTimer

from studytimer.core.collaborators import IntervalClock


TICK_INTERVAL_MS = 1000


class QtIntervalClock(IntervalClock):
    """One-second tick source on the Qt event loop."""

    def __init__(self, interval_ms: int = TICK_INTERVAL_MS) -> None:
        self._timer = QTimer()
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self._on_timeout)
        self._on_tick: Callable[[], None] | None = None

    @property
    def is_active(self) -> bool:
        return self._timer.isActive()

    @property
    def interval_ms(self) -> int:
        return self._timer.interval()

    def start(self, on_tick: Callable[[], None]) -> None:
        self._on_tick = on_tick
        self._timer.start()

    def stop(self) -> None:
        self._timer.stop()

    def _on_timeout(self) -> None:
        if self._on_tick is not None:
            self._on_tick()
