from __future__ import annotations

import logging

from PyQt6.QtWidgets import QApplication

from studytimer.core.assets import load_sound_effect
from studytimer.core.collaborators import SoundPlayer


logger = logging.getLogger(__name__)


class QtSoundPlayer(SoundPlayer):
    """Plays cues from ``assets/sounds``; a cue that is still playing is not restarted."""

    def __init__(self, volume: float = 1.0) -> None:
        self.volume = max(0.0, min(1.0, volume))

    def play(self, cue: str) -> None:
        try:
            effect = load_sound_effect(cue)
            if effect is None:
                QApplication.beep()
                return
            if effect.isPlaying():
                return
            effect.setVolume(self.volume)
            effect.play()
        except Exception:
            logger.warning("Could not play cue %s", cue, exc_info=True)
