from __future__ import annotations

from PyQt6.QtCore import QEvent, QRect, Qt, pyqtSignal
from PyQt6.QtGui import QAction, QColor, QKeySequence, QPainter, QPen
from PyQt6.QtWidgets import (
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QPushButton,
    QSlider,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from studytimer.core.app_state import AppState
from studytimer.core.formatting import describe_schedule, format_budget, format_study_duration
from studytimer.core.schedule import IntervalKind, MIN_STUDY_SECONDS, Schedule
from studytimer.core.session import SessionPhase, SessionSnapshot
from studytimer.services.notifications import LocalNotificationScheduler
from studytimer.ui.styles import kind_color


STUDY_STEP_SECONDS = 15
BUDGET_STEP_SECONDS = 30 * 60


class ProgressRing(QWidget):
    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setMinimumSize(320, 320)
        self._progress = 0.0
        self._remaining_text = "00:00"
        self._kind = IntervalKind.STUDY

    def set_state(self, progress: float, remaining_text: str, kind: IntervalKind) -> None:
        self._progress = progress
        self._remaining_text = remaining_text
        self._kind = kind
        self.update()

    def paintEvent(self, event) -> None:  # noqa: N802
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        rect = self.rect().adjusted(20, 20, -20, -20)
        diameter = min(rect.width(), rect.height())
        circle_rect = QRect(
            rect.center().x() - diameter // 2,
            rect.center().y() - diameter // 2,
            diameter,
            diameter,
        )
        painter.fillRect(self.rect(), kind_color(self._kind))

        painter.setPen(QPen(QColor(255, 255, 255, 80), 20))
        painter.drawEllipse(circle_rect)
        painter.setPen(QPen(QColor("#ffffff"), 20, Qt.PenStyle.SolidLine, Qt.PenCapStyle.RoundCap))
        span = int(-360 * 16 * self._progress)
        painter.drawArc(circle_rect, 90 * 16, span)

        font = painter.font()
        font.setPointSize(max(12, diameter // 8))
        font.setBold(True)
        painter.setFont(font)
        painter.drawText(circle_rect, Qt.AlignmentFlag.AlignCenter, self._remaining_text)


class SetupPage(QWidget):
    def __init__(self, app_state: AppState, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.app_state = app_state

        layout = QVBoxLayout(self)
        heading = QLabel("Study Timer")
        heading.setObjectName("Heading")
        layout.addWidget(heading, alignment=Qt.AlignmentFlag.AlignHCenter)

        form = QFormLayout()
        self.study_slider = self._slider(1, 3600 // STUDY_STEP_SECONDS)
        self.rest_slider = self._slider(0, 30)
        self.budget_slider = self._slider(1, 16)
        self.study_label = QLabel()
        self.rest_label = QLabel()
        self.budget_label = QLabel()
        form.addRow("Study interval", self._row(self.study_slider, self.study_label))
        form.addRow("Rest interval", self._row(self.rest_slider, self.rest_label))
        form.addRow("Total study time", self._row(self.budget_slider, self.budget_label))
        layout.addLayout(form)

        self.summary_label = QLabel()
        self.summary_label.setObjectName("MutedText")
        layout.addWidget(self.summary_label, alignment=Qt.AlignmentFlag.AlignHCenter)
        layout.addStretch()

        self.start_btn = QPushButton("Start Session")
        self.start_btn.setObjectName("PrimaryButton")
        layout.addWidget(self.start_btn)

        self._load_config()
        for slider in (self.study_slider, self.rest_slider, self.budget_slider):
            slider.valueChanged.connect(self._on_changed)
        self.app_state.schedule_changed.connect(self._show_schedule)
        self._show_schedule(self.app_state.schedule)

    def _slider(self, low: int, high: int) -> QSlider:
        slider = QSlider(Qt.Orientation.Horizontal)
        slider.setRange(low, high)
        return slider

    def _row(self, slider: QSlider, label: QLabel) -> QWidget:
        row = QWidget()
        row_layout = QHBoxLayout(row)
        row_layout.setContentsMargins(0, 0, 0, 0)
        row_layout.addWidget(slider, 1)
        label.setMinimumWidth(70)
        row_layout.addWidget(label)
        return row

    def _load_config(self) -> None:
        config = self.app_state.config
        self.study_slider.setValue(max(MIN_STUDY_SECONDS, config.study_seconds) // STUDY_STEP_SECONDS)
        self.rest_slider.setValue(config.rest_seconds // 60)
        self.budget_slider.setValue(max(1, config.total_budget_seconds // BUDGET_STEP_SECONDS))

    def _on_changed(self, *_args) -> None:
        self.app_state.configure(
            self.study_slider.value() * STUDY_STEP_SECONDS,
            self.rest_slider.value() * 60,
            self.budget_slider.value() * BUDGET_STEP_SECONDS,
        )

    def _show_schedule(self, schedule: Schedule) -> None:
        self.study_label.setText(format_study_duration(schedule.study_seconds))
        self.rest_label.setText(format_study_duration(schedule.rest_seconds) if schedule.has_rest else "off")
        self.budget_label.setText(format_budget(schedule.config.total_budget_seconds))
        self.summary_label.setText(describe_schedule(schedule))


class TimerPage(QWidget):
    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        layout = QVBoxLayout(self)
        self.kind_label = QLabel(IntervalKind.STUDY.value)
        self.kind_label.setObjectName("Heading")
        self.session_label = QLabel()
        self.session_label.setObjectName("SubtleTitle")
        layout.addWidget(self.kind_label, alignment=Qt.AlignmentFlag.AlignHCenter)
        layout.addWidget(self.session_label, alignment=Qt.AlignmentFlag.AlignHCenter)

        self.ring = ProgressRing()
        layout.addWidget(self.ring, 1)

        controls = QHBoxLayout()
        self.stop_btn = QPushButton("Stop")
        self.stop_btn.setObjectName("SecondaryButton")
        self.pause_btn = QPushButton("Pause")
        self.pause_btn.setObjectName("PrimaryButton")
        controls.addStretch()
        controls.addWidget(self.stop_btn)
        controls.addWidget(self.pause_btn)
        controls.addStretch()
        layout.addLayout(controls)

    def show_snapshot(self, snapshot: SessionSnapshot) -> None:
        self.kind_label.setText(snapshot.kind.value)
        self.session_label.setText(f"Session {snapshot.index} of {snapshot.total_study_sessions}")
        self.ring.set_state(snapshot.progress, snapshot.formatted_time, snapshot.kind)
        self.pause_btn.setText("Resume" if snapshot.is_paused else "Pause")


class MainWindow(QMainWindow):
    window_state_changed = pyqtSignal()

    def __init__(self, app_state: AppState, notifications: LocalNotificationScheduler) -> None:
        super().__init__()
        self.setWindowTitle("Study Timer")
        self.resize(480, 640)

        self.app_state = app_state
        self.notifications = notifications

        self._build_ui()
        self._connect_signals()
        self._on_snapshot(self.app_state.snapshot)

    def _build_ui(self) -> None:
        self.stack = QStackedWidget(self)
        self.setCentralWidget(self.stack)
        self.setup_page = SetupPage(self.app_state)
        self.timer_page = TimerPage()
        self.stack.addWidget(self.setup_page)
        self.stack.addWidget(self.timer_page)

        space_action = QAction(self)
        space_action.setShortcut(QKeySequence(Qt.Key.Key_Space))
        space_action.triggered.connect(self._space_toggle)
        self.addAction(space_action)

    def _connect_signals(self) -> None:
        self.setup_page.start_btn.clicked.connect(self.app_state.start)
        self.timer_page.stop_btn.clicked.connect(self.app_state.stop)
        self.timer_page.pause_btn.clicked.connect(self.app_state.toggle_pause)
        self.app_state.snapshot_changed.connect(self._on_snapshot)

    def _space_toggle(self) -> None:
        if self.app_state.snapshot.phase is SessionPhase.IDLE:
            self.app_state.start()
        else:
            self.app_state.toggle_pause()

    def _on_snapshot(self, snapshot: SessionSnapshot) -> None:
        if snapshot.phase is SessionPhase.IDLE:
            self.stack.setCurrentWidget(self.setup_page)
            return
        self.stack.setCurrentWidget(self.timer_page)
        self.timer_page.show_snapshot(snapshot)

    def changeEvent(self, event) -> None:  # noqa: N802
        super().changeEvent(event)
        if event.type() == QEvent.Type.WindowStateChange:
            self.window_state_changed.emit()

    def closeEvent(self, event) -> None:  # noqa: N802
        self.app_state.stop()
        self.notifications.cancel_all()
        event.accept()
