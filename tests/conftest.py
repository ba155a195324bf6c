import math
from datetime import datetime

import pytest

from race_replay.course import MarkerTable, resample
from race_replay.distance import EARTH_RADIUS_MI
from race_replay.models import GeoPoint, WeatherRecord

START_LAT, START_LNG = 35.2271, -80.8431

# Degrees of latitude per mile along a meridian
DEG_PER_MILE = math.degrees(1 / EARTH_RADIUS_MI)


def straight_route(miles: float, steps: int = 1) -> list[GeoPoint]:
    """Points due north from the start, `miles` long in `steps` equal segments."""
    return [
        GeoPoint(lat=START_LAT + DEG_PER_MILE * miles * i / steps, lng=START_LNG)
        for i in range(steps + 1)
    ]


def with_grade(table: MarkerTable, grade_pct: float, start_ft: float = 700.0) -> MarkerTable:
    """Attach a constant grade (percent) to every marker in the table."""
    rise_per_marker = table.interval * 5280 * grade_pct / 100
    return table.with_elevations([start_ft + i * rise_per_marker for i in range(len(table))])


@pytest.fixture
def one_mile_route():
    return straight_route(1.0)


@pytest.fixture
def flat_table():
    """Three-mile course without elevation data."""
    return resample(straight_route(3.0, steps=7))


@pytest.fixture
def marathon_table():
    """A 26.2 mi course, flat at 700 ft."""
    return with_grade(resample(straight_route(26.2, steps=40)), 0.0)


@pytest.fixture
def uphill_table():
    """A 26.2 mi course climbing steadily at 2%."""
    return with_grade(resample(straight_route(26.2, steps=40)), 2.0)


@pytest.fixture
def weather_series():
    return [
        WeatherRecord(datetime(2024, 11, 9, 7, 0), 50.0, 40.0, 4.0, 350.0),
        WeatherRecord(datetime(2024, 11, 9, 8, 0), 56.0, 44.0, 8.0, 10.0),
        WeatherRecord(datetime(2024, 11, 9, 9, 0), 62.0, 46.0, 10.0, 90.0),
    ]
