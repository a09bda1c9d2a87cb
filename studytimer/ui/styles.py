from __future__ import annotations

from PyQt6.QtGui import QColor
from PyQt6.QtWidgets import QApplication

from studytimer.core.schedule import IntervalKind


STUDY_COLOR = "#d9534f"
REST_COLOR = "#4caf6a"
INK_COLOR = "#22303c"
PAPER_COLOR = "#eef2f5"

THEME_QSS = f"""
QMainWindow, QStackedWidget > QWidget {{
    background: {PAPER_COLOR};
    color: {INK_COLOR};
    font-size: 14px;
}}

QLabel {{
    background: transparent;
}}

QLabel#Heading {{
    font-size: 30px;
    font-weight: 700;
}}

QLabel#SubtleTitle {{
    font-size: 15px;
    color: #5b6b78;
}}

QLabel#MutedText {{
    color: #7a8894;
    padding: 12px 0;
}}

QPushButton {{
    border: 2px solid #c9d3db;
    background: #ffffff;
    border-radius: 10px;
    padding: 10px 22px;
    font-weight: 600;
}}

QPushButton:hover {{
    border-color: {REST_COLOR};
}}

QPushButton#PrimaryButton {{
    background: {STUDY_COLOR};
    border-color: {STUDY_COLOR};
    color: #ffffff;
}}

QPushButton#PrimaryButton:pressed {{
    background: #b8403c;
}}

QPushButton#SecondaryButton:hover {{
    border-color: {STUDY_COLOR};
    color: {STUDY_COLOR};
}}

QSlider::groove:horizontal {{
    background: #d5dde3;
    height: 6px;
    border-radius: 3px;
}}

QSlider::sub-page:horizontal {{
    background: {REST_COLOR};
    border-radius: 3px;
}}

QSlider::handle:horizontal {{
    background: #ffffff;
    border: 2px solid {REST_COLOR};
    width: 16px;
    margin: -7px 0;
    border-radius: 10px;
}}
"""


def kind_color(kind: IntervalKind) -> QColor:
    color = QColor(STUDY_COLOR if kind is IntervalKind.STUDY else REST_COLOR)
    color.setAlphaF(0.85)
    return color


def apply_theme(app: QApplication) -> None:
    app.setStyleSheet(THEME_QSS)
