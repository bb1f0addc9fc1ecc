"""Time formatting helpers for the seek bar."""

from __future__ import annotations

import math

_HOUR_MS = 3_600_000


def format_time_ms(ms: int) -> str:
    """Format milliseconds as MM:SS or H:MM:SS when needed."""
    return _format(_coerce_ms(ms), hours=_coerce_ms(ms) >= _HOUR_MS)


def format_time_pair_ms(position_ms: int, duration_ms: int) -> tuple[str, str]:
    """Format position and duration with a shared width.

    A non-positive duration means the media length is not known yet.
    """
    position = _coerce_ms(position_ms)
    duration = _coerce_ms(duration_ms)
    hours = max(position, duration) >= _HOUR_MS
    if duration <= 0:
        return _format(position, hours=hours), "--:--:--" if hours else "--:--"
    return _format(position, hours=hours), _format(duration, hours=hours)


def _format(ms: int, *, hours: bool) -> str:
    total_minutes, seconds = divmod(ms // 1000, 60)
    if not hours:
        return f"{total_minutes:02d}:{seconds:02d}"
    hour_count, minutes = divmod(total_minutes, 60)
    return f"{hour_count}:{minutes:02d}:{seconds:02d}"


def _coerce_ms(value: int) -> int:
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(numeric):
        return 0
    return max(0, int(numeric))
