"""Fetch marker elevations from the Open-Elevation API."""

import logging
import time
from collections.abc import Callable, Sequence

import requests

from race_replay.course import MarkerTable
from race_replay.models import Marker

logger = logging.getLogger(__name__)

OPEN_ELEVATION_URL = "https://api.open-elevation.com/api/v1/lookup"

OPEN_ELEVATION_BATCH_SIZE = 100

FEET_PER_METER = 3.28084


def _elevation_feet(result) -> float:
    """Convert one lookup result to feet.

    Raises:
        ValueError: If the result is not an object with a numeric elevation.
    """
    if not isinstance(result, dict):
        raise ValueError(f"Malformed elevation result: {result!r}")
    meters = result.get("elevation")
    if meters is None:
        return 0.0
    try:
        return float(meters) * FEET_PER_METER
    except (TypeError, ValueError):
        raise ValueError(f"Non-numeric elevation: {meters!r}") from None


def fetch_elevations(
    markers: Sequence[Marker],
    batch_size: int = OPEN_ELEVATION_BATCH_SIZE,
    url: str = OPEN_ELEVATION_URL,
) -> list[float]:
    """Fetch elevation for a list of markers.

    Args:
        markers: Markers with lat/lng
        batch_size: Number of locations per API request
        url: Lookup endpoint

    Returns:
        List of elevations in feet, same length as markers. A location the
        API returns without a value counts as 0.

    Raises:
        requests.RequestException: If an API request fails.
        ValueError: If a response is malformed or short.
    """
    elevations: list[float] = []

    for i in range(0, len(markers), batch_size):
        batch = markers[i : i + batch_size]
        locations = [{"latitude": m.lat, "longitude": m.lng} for m in batch]

        response = requests.post(
            url,
            json={"locations": locations},
            headers={"Accept": "application/json"},
            timeout=30,
        )
        response.raise_for_status()

        data = response.json()
        results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(results, list) or len(results) != len(batch):
            raise ValueError(f"Expected {len(batch)} elevation results from {url}")
        for result in results:
            elevations.append(_elevation_feet(result))

        # Rate limiting - be nice to free APIs
        if i + batch_size < len(markers):
            time.sleep(0.5)

    return elevations


def attach_elevation(
    table: MarkerTable,
    fetch: Callable[[Sequence[Marker]], list[float]] = fetch_elevations,
) -> MarkerTable:
    """Return the table with elevation attached to every marker.

    A failed lookup is not fatal: the original table is returned unchanged
    and the course is treated as flat.
    """
    if len(table) == 0:
        return table

    try:
        elevations = fetch(table.markers())
        return table.with_elevations(elevations)
    except (requests.RequestException, ValueError) as e:
        logger.warning("Elevation lookup failed, assuming flat course: %s", e)
        return table
