from __future__ import annotations

"""Text helpers shared by the setup screen, the timer screen and the tray."""

from studytimer.core.schedule import Schedule


def format_clock(seconds: int) -> str:
    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


def format_study_duration(seconds: int) -> str:
    """Shows seconds below one minute, otherwise minutes with an optional remainder."""
    seconds = int(seconds)
    if seconds < 60:
        return f"{seconds} sec"
    minutes, rest = divmod(seconds, 60)
    if rest == 0:
        return f"{minutes} min"
    return f"{minutes}m {rest}s"


def format_budget(seconds: int) -> str:
    minutes = int(seconds) // 60
    if minutes < 60:
        return f"{minutes} min"
    hours, rest = divmod(minutes, 60)
    if rest == 0:
        return f"{hours} h"
    return f"{minutes / 60:.1f} h"


def describe_schedule(schedule: Schedule) -> str:
    rest = f"{format_study_duration(schedule.rest_seconds)} rest" if schedule.has_rest else "no rest"
    return (
        f"{schedule.total_study_sessions} study sessions "
        f"({schedule.total_study_sessions} × {format_study_duration(schedule.study_seconds)} study + {rest})"
    )
