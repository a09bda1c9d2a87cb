from __future__ import annotations

from typing import Callable

from PyQt6.QtCore import QObject
from PyQt6.QtWidgets import QApplication, QStyle, QSystemTrayIcon

from studytimer.services.notifications import NotificationRequest


MESSAGE_TIMEOUT_MS = 8000


class TrayNotifier(QObject):
    """Tray icon that shows notification balloons and reports taps on them."""

    def __init__(self, app: QApplication, on_tapped: Callable[[str], None] | None = None) -> None:
        super().__init__()
        icon = app.style().standardIcon(QStyle.StandardPixmap.SP_MediaPlay)
        self.icon = QSystemTrayIcon(icon, self)
        self.icon.messageClicked.connect(self._on_message_clicked)
        self._on_tapped = on_tapped
        self._last_session_id: str | None = None

    def set_on_tapped(self, fn: Callable[[str], None] | None) -> None:
        self._on_tapped = fn

    def show_message(self, request: NotificationRequest) -> None:
        self._last_session_id = request.session_id
        if not QSystemTrayIcon.isSystemTrayAvailable():
            QApplication.beep()
            return
        self.icon.show()
        self.icon.showMessage(
            request.title,
            request.body,
            QSystemTrayIcon.MessageIcon.Information,
            MESSAGE_TIMEOUT_MS,
        )

    def _on_message_clicked(self) -> None:
        if self._on_tapped is not None and self._last_session_id is not None:
            self._on_tapped(self._last_session_id)
