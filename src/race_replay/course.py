"""Course resampling and distance-based queries.

A route polyline is walked once and resampled into markers spaced at a fixed
distance interval (0.1 mi by default). Every query afterwards works on the
two markers bracketing the requested distance.
"""

from __future__ import annotations

import math
from collections.abc import Iterator, Sequence

from race_replay.distance import FEET_PER_MILE, bearing, haversine_distance
from race_replay.models import GeoPoint, Marker

DEFAULT_INTERVAL = 0.1  # miles

# Slack for float drift when testing marker crossings and bracket keys
_TOLERANCE = 1e-9


def _decimals_for(interval: float) -> int:
    """Number of decimal places implied by an interval like 0.1 or 0.25."""
    text = f"{interval:.10f}".rstrip("0")
    decimals = len(text.split(".")[1]) if "." in text else 0
    return max(1, decimals)


def format_key(distance: float, decimals: int) -> str:
    """Format a marker distance the way table keys are stored."""
    return f"{distance:.{decimals}f}"


class MarkerTable:
    """Ordered markers keyed by distance, with interpolating queries."""

    def __init__(self, markers: dict[str, Marker] | None = None, interval: float = DEFAULT_INTERVAL):
        if interval <= 0:
            raise ValueError(f"Marker interval must be positive, got {interval}")
        self.interval = interval
        self.decimals = _decimals_for(interval)
        self._markers: dict[str, Marker] = dict(markers or {})

    def __len__(self) -> int:
        return len(self._markers)

    def __bool__(self) -> bool:
        return len(self._markers) >= 2

    def __iter__(self) -> Iterator[str]:
        return iter(self._markers)

    def __contains__(self, key: object) -> bool:
        return key in self._markers

    def __getitem__(self, key: str) -> Marker:
        return self._markers[key]

    def keys(self) -> list[str]:
        return list(self._markers)

    def markers(self) -> list[Marker]:
        return list(self._markers.values())

    def items(self) -> list[tuple[str, Marker]]:
        return list(self._markers.items())

    @property
    def course_length(self) -> float:
        """Distance of the final marker, 0.0 for an empty table."""
        if not self._markers:
            return 0.0
        return float(next(reversed(self._markers)))

    @property
    def has_elevation(self) -> bool:
        return bool(self._markers) and all(m.elevation is not None for m in self._markers.values())

    def key_for(self, distance: float) -> str:
        return format_key(distance, self.decimals)

    def with_elevations(self, elevations: Sequence[float | None]) -> MarkerTable:
        """Return a new table with one elevation (feet) attached per marker.

        Raises:
            ValueError: If the number of elevations does not match the markers.
        """
        if len(elevations) != len(self._markers):
            raise ValueError(
                f"Got {len(elevations)} elevations for {len(self._markers)} markers"
            )
        markers = {
            key: Marker(lat=m.lat, lng=m.lng, elevation=elev)
            for (key, m), elev in zip(self._markers.items(), elevations)
        }
        return MarkerTable(markers, self.interval)

    def elevation_profile(self) -> list[tuple[float, float]]:
        """(distance, elevation) pairs for markers that carry elevation."""
        return [
            (float(key), m.elevation)
            for key, m in self._markers.items()
            if m.elevation is not None
        ]

    def _brackets(self, distance: float) -> tuple[float, Marker | None, Marker | None] | None:
        """Find the markers before and after a distance.

        Returns (prev_distance, prev_marker, next_marker), where next_marker is
        None when the brackets coincide or the next marker does not exist.
        Returns None when there is not enough data to answer any query.
        """
        if len(self._markers) < 2:
            return None

        steps = distance / self.interval
        nearest = round(steps)
        if abs(steps - nearest) < _TOLERANCE:
            steps = nearest
        prev_dist = math.floor(steps) * self.interval
        next_dist = math.ceil(steps) * self.interval

        prev_key = self.key_for(prev_dist)
        next_key = self.key_for(next_dist)
        prev_marker = self._markers.get(prev_key)
        next_marker = self._markers.get(next_key)

        if prev_key == next_key or next_marker is None:
            return prev_dist, prev_marker, None
        return prev_dist, prev_marker, next_marker

    def _clamped(self, distance: float) -> Marker:
        if distance <= 0:
            return next(iter(self._markers.values()))
        return next(reversed(self._markers.values()))

    def position_at(self, distance: float) -> GeoPoint | None:
        """Interpolated position at a distance, clamped to the course ends."""
        brackets = self._brackets(distance)
        if brackets is None:
            return None
        prev_dist, prev_marker, next_marker = brackets

        if prev_marker is None:
            return self._clamped(distance).point
        if next_marker is None:
            return prev_marker.point

        ratio = (distance - prev_dist) / self.interval
        return GeoPoint(
            lat=prev_marker.lat + (next_marker.lat - prev_marker.lat) * ratio,
            lng=prev_marker.lng + (next_marker.lng - prev_marker.lng) * ratio,
        )

    def elevation_at(self, distance: float) -> float | None:
        """Interpolated elevation in feet, or None without elevation data."""
        brackets = self._brackets(distance)
        if brackets is None:
            return None
        prev_dist, prev_marker, next_marker = brackets

        if prev_marker is None:
            return self._clamped(distance).elevation
        if next_marker is None or next_marker.elevation is None or prev_marker.elevation is None:
            return prev_marker.elevation

        ratio = (distance - prev_dist) / self.interval
        return prev_marker.elevation + (next_marker.elevation - prev_marker.elevation) * ratio

    def incline_at(self, distance: float) -> float:
        """Grade in percent between the bracketing markers; positive is uphill.

        Flat (0.0) when elevation is missing or the brackets coincide.
        """
        brackets = self._brackets(distance)
        if brackets is None:
            return 0.0
        _, prev_marker, next_marker = brackets
        if prev_marker is None or next_marker is None:
            return 0.0
        if prev_marker.elevation is None or next_marker.elevation is None:
            return 0.0

        rise = next_marker.elevation - prev_marker.elevation
        run = self.interval * FEET_PER_MILE
        return rise / run * 100

    def bearing_at(self, distance: float) -> float:
        """Heading from the previous marker to the next one, in degrees."""
        brackets = self._brackets(distance)
        if brackets is None:
            return 0.0
        _, prev_marker, next_marker = brackets
        if prev_marker is None or next_marker is None:
            return 0.0
        return bearing(prev_marker.point, next_marker.point)


def resample(points: Sequence[GeoPoint], interval: float = DEFAULT_INTERVAL) -> MarkerTable:
    """Resample a polyline into markers spaced every `interval` miles.

    Markers are linearly interpolated within the segment where the running
    distance crosses each multiple of the interval. Duplicate consecutive
    points are skipped. No marker is placed beyond the route's length.

    Args:
        points: Ordered route points
        interval: Marker spacing in miles

    Returns:
        MarkerTable without elevation; empty if fewer than 2 points.
    """
    table = MarkerTable(interval=interval)
    if len(points) < 2:
        return table

    decimals = table.decimals
    first = points[0]
    markers = {format_key(0.0, decimals): Marker(lat=first.lat, lng=first.lng)}

    total = 0.0
    index = 1
    for prev, cur in zip(points, points[1:]):
        segment = haversine_distance(prev.lat, prev.lng, cur.lat, cur.lng)
        if segment == 0:
            continue

        next_marker = index * interval
        while total + segment + _TOLERANCE >= next_marker:
            ratio = min(1.0, max(0.0, (next_marker - total) / segment))
            markers[format_key(next_marker, decimals)] = Marker(
                lat=prev.lat + (cur.lat - prev.lat) * ratio,
                lng=prev.lng + (cur.lng - prev.lng) * ratio,
            )
            index += 1
            next_marker = index * interval
        total += segment

    return MarkerTable(markers, interval)
