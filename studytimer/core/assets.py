from __future__ import annotations

"""Sound cue lookup with an in-memory cache of loaded effects."""

from pathlib import Path

from PyQt6.QtCore import QUrl
from PyQt6.QtMultimedia import QSoundEffect


ASSETS_DIR = Path(__file__).resolve().parents[2] / "assets"
SOUND_EXTENSION = ".wav"
_EFFECT_CACHE: dict[str, QSoundEffect | None] = {}


def get_asset_path(relative: str) -> Path:
    return ASSETS_DIR / relative


def sound_path(cue: str) -> Path:
    return get_asset_path(f"sounds/{cue}{SOUND_EXTENSION}")


def asset_exists(relative: str) -> bool:
    return get_asset_path(relative).exists()


def load_sound_effect(cue: str) -> QSoundEffect | None:
    """Returns a cached ``QSoundEffect`` for the cue, or ``None`` if the file is missing."""
    if cue in _EFFECT_CACHE:
        return _EFFECT_CACHE[cue]

    path = sound_path(cue)
    if not path.exists():
        _EFFECT_CACHE[cue] = None
        return None

    effect = QSoundEffect()
    effect.setSource(QUrl.fromLocalFile(str(path)))
    _EFFECT_CACHE[cue] = effect
    return effect


def clear_cache() -> None:
    _EFFECT_CACHE.clear()
