"""Formatting utilities for display."""

from datetime import datetime

from race_replay.models import Snapshot


def format_clock_time(clock_time: datetime | None) -> str:
    """Format a clock time as "07:21:30 AM"."""
    if clock_time is None:
        return "--:--:--"
    return clock_time.strftime("%I:%M:%S %p")


def format_pace(seconds: float) -> str:
    """Format seconds per mile as MM:SS."""
    if seconds == 0:
        return "--:--"
    minutes = int((seconds / 60) % 60)
    secs = int(seconds % 60)
    return f"{minutes:02d}:{secs:02d}"


def format_duration_long(seconds: float) -> str:
    """Format seconds as Xh Ym Zs string."""
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)
    return f"{hours}h {minutes:02d}m {secs:02d}s"


def slider_to_speed(value: int) -> float:
    """Convert slider value (0-100) to a replay speed multiplier.

    Slider 0 = 0.5x
    Slider 25 = 1.0x (real time)
    Slider 100 = 21.0x

    Below 25 the speed ramps linearly from 0.5x to 0.9x, above it from 1.0x
    upwards by 20x over the remaining travel.
    """
    value = int(value)
    if value == 25:
        return 1.0
    if value < 25:
        return 0.5 + (value / 24) * 0.4
    return 1.0 + ((value - 25) / 75) * 20.0


def format_snapshot(snapshot: Snapshot) -> str:
    """One status line for a snapshot."""
    status = snapshot.status
    line = (
        f"{format_clock_time(status.clock_time)}  "
        f"Mile {status.distance:6.2f}  "
        f"Pace {format_pace(status.pace_seconds_per_unit)}/mi  "
        f"Incline {status.incline_percent:5.1f}%  "
        f"Heading {snapshot.runner_direction:3.0f}°"
    )
    if snapshot.weather is not None:
        w = snapshot.weather
        line += (
            f"  Temp {w.temperature:.0f}°F  Dew {w.dew_point:.0f}  "
            f"Wind {w.wind_speed:.1f} mph @ {w.wind_direction_deg:.0f}°"
        )
    return line
