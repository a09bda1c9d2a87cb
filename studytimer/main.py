from __future__ import annotations

"""Application entry point.

Sets up logging, opens the settings store, wires the session controller to its
Qt collaborators and starts the main window.
"""

import logging
import os
import sys
from pathlib import Path

from PyQt6.QtWidgets import QApplication

from studytimer.core.app_state import AppState
from studytimer.core.clock import QtIntervalClock
from studytimer.core.session import SessionController
from studytimer.data.storage import Storage
from studytimer.services.activity import TrayActivityPresenter
from studytimer.services.notifications import LocalNotificationScheduler, QtNotificationCenter
from studytimer.services.sound import QtSoundPlayer
from studytimer.ui.lifecycle import LifecycleMonitor
from studytimer.ui.main_window import MainWindow
from studytimer.ui.styles import apply_theme
from studytimer.ui.tray import TrayNotifier


logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    level_name = (level or os.environ.get("STUDYTIMER_LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)


def default_db_path() -> Path:
    """Database path from ``STUDYTIMER_DB`` or ``studytimer.db`` in the working directory."""
    configured = os.environ.get("STUDYTIMER_DB")
    return Path(configured) if configured else Path.cwd() / "studytimer.db"


def main() -> int:
    configure_logging()
    app = QApplication(sys.argv)
    app.setQuitOnLastWindowClosed(True)
    apply_theme(app)

    storage = Storage(default_db_path())
    storage.init_db()

    tray = TrayNotifier(app)
    center = QtNotificationCenter(show_message=tray.show_message)
    notifications = LocalNotificationScheduler(center)
    controller = SessionController(
        clock=QtIntervalClock(),
        notifications=notifications,
        activity=TrayActivityPresenter(tray.icon),
        sound=QtSoundPlayer(),
    )
    center.set_on_delivered(controller.on_wake_delivered)
    tray.set_on_tapped(controller.on_wake_delivered)

    app_state = AppState(controller)
    app_state.load_from_storage(storage)

    window = MainWindow(app_state=app_state, notifications=notifications)
    lifecycle = LifecycleMonitor(
        on_change=app_state.set_foreground,
        is_minimized=window.isMinimized,
        state=app.applicationState(),
    )
    app.applicationStateChanged.connect(lifecycle.on_application_state)
    window.window_state_changed.connect(lifecycle.on_window_state)
    app.aboutToQuit.connect(notifications.cancel_all)

    window.show()
    logger.info("Study timer ready (db=%s)", storage.db_path)
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
