"""Schedule helpers — off-peak window and friendly durations.

Off-peak is the fixed overnight window 22:00–06:00 local time. Pricing and
coaching both use ``is_off_peak``.
"""

from __future__ import annotations

from datetime import timedelta

OFF_PEAK_START_MINUTES = 22 * 60
OFF_PEAK_END_MINUTES = 6 * 60
OFF_PEAK_START = "22:00"


def parse_hhmm(text: str) -> tuple[int, int]:
    """Split 'HH:MM' into (hour, minute). Non-numeric parts count as 0."""
    parts = (text or "").split(":")
    hour = _to_int(parts[0]) if parts else 0
    minute = _to_int(parts[1]) if len(parts) > 1 else 0
    return hour, minute


def _to_int(part: str) -> int:
    try:
        return int(part.strip())
    except ValueError:
        return 0


def is_off_peak(text: str) -> bool:
    hour, minute = parse_hhmm(text)
    minutes = hour * 60 + minute
    return minutes >= OFF_PEAK_START_MINUTES or minutes < OFF_PEAK_END_MINUTES


def next_off_peak_start() -> str:
    """Start of the next off-peak window.

    The window always opens at 22:00, whether that is later today or
    tomorrow, so no clock is needed.
    """
    return OFF_PEAK_START


def format_duration(delta: timedelta) -> str:
    """Largest whole unit of a remaining duration: '2d', '4h', '15m', '30s'."""
    seconds = int(delta.total_seconds())
    if seconds < 0:
        return "0s"
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24
    if days > 0:
        return f"{days}d"
    if hours > 0:
        return f"{hours}h"
    if minutes > 0:
        return f"{minutes}m"
    return f"{seconds}s"
