"""Runner pace model: target pace adjusted for grade and fatigue."""

from race_replay.course import MarkerTable
from race_replay.models import PaceParams


def _to_int(part: str) -> int:
    """Plain digits only; signs, underscores and decimals count as malformed."""
    part = part.strip()
    if not part.isdigit():
        return 0
    try:
        return int(part)
    except ValueError:
        return 0


def parse_pace(text: str | None) -> int:
    """Parse an "MM:SS" pace into seconds per mile.

    Missing or non-numeric parts count as zero, so malformed text degrades to
    a zero pace instead of raising.
    """
    if not text:
        return 0
    parts = text.split(":")
    minutes = _to_int(parts[0])
    seconds = _to_int(parts[1]) if len(parts) > 1 else 0
    return minutes * 60 + seconds


def grade_penalty(incline: float, params: PaceParams | None = None) -> float:
    """Seconds per mile added for climbing. Descents earn no bonus."""
    params = params or PaceParams()
    if incline <= 0:
        return 0.0
    return incline * params.grade_penalty_per_percent


def fatigue_penalty(distance: float, params: PaceParams | None = None) -> float:
    """Seconds per mile added late in the race, stepped by distance."""
    params = params or PaceParams()
    if distance >= params.wall_distance:
        return params.wall_penalty
    if distance >= params.fatigue_distance:
        return params.fatigue_penalty
    return 0.0


def adjusted_pace(
    target_pace: str,
    distance: float,
    table: MarkerTable,
    params: PaceParams | None = None,
) -> float:
    """Effort at a point on the course, in seconds per mile.

    Args:
        target_pace: Target pace as "MM:SS"
        distance: Distance covered so far in miles
        table: Course markers used to look up the incline
        params: Penalty tunables

    Returns:
        Base pace plus grade and fatigue penalties; never below the base.
    """
    params = params or PaceParams()
    base = parse_pace(target_pace)
    incline = table.incline_at(distance)
    return base + grade_penalty(incline, params) + fatigue_penalty(distance, params)
