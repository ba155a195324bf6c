from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float


@dataclass(frozen=True)
class Marker:
    lat: float
    lng: float
    elevation: float | None = None  # feet

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(lat=self.lat, lng=self.lng)


@dataclass(frozen=True)
class WeatherRecord:
    date: datetime
    temperature: float  # °F
    dew_point: float  # °F
    wind_speed: float  # mph
    wind_direction_deg: float  # degrees, 0=North


@dataclass
class SimulationState:
    total_distance: float = 0.0  # miles
    race_time_elapsed: float = 0.0  # seconds


@dataclass(frozen=True)
class StatusSample:
    clock_time: datetime | None
    elapsed_time: float  # seconds
    distance: float  # miles
    pace_seconds_per_unit: float  # seconds per mile
    incline_percent: float


@dataclass(frozen=True)
class Snapshot:
    position: GeoPoint | None
    status: StatusSample
    weather: WeatherRecord | None
    runner_direction: float = 0.0  # degrees, 0=North


@dataclass(frozen=True)
class PaceParams:
    grade_penalty_per_percent: float = 60.0  # seconds added per 1% uphill
    fatigue_distance: float = 20.0  # miles; first fatigue step
    fatigue_penalty: float = 60.0  # seconds
    wall_distance: float = 24.0  # miles; second fatigue step
    wall_penalty: float = 90.0  # seconds
