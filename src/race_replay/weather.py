"""Historical weather series: loading and interpolation at a clock time."""

import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime

import pandas as pd

from race_replay.models import WeatherRecord

logger = logging.getLogger(__name__)

# Normalized header -> record field. Headers are lowercased and stripped of
# anything that is not a letter or digit before lookup.
COLUMN_ALIASES = {
    "date": "date",
    "datetime": "date",
    "time": "date",
    "timestamp": "date",
    "temperature": "temperature",
    "temp": "temperature",
    "tempf": "temperature",
    "dewpoint": "dew_point",
    "dew": "dew_point",
    "dewpointf": "dew_point",
    "windspeed": "wind_speed",
    "wind": "wind_speed",
    "windspeedmph": "wind_speed",
    "winddirection": "wind_direction_deg",
    "winddirectiondeg": "wind_direction_deg",
    "winddir": "wind_direction_deg",
    "winddeg": "wind_direction_deg",
}

NUMERIC_FIELDS = ["temperature", "dew_point", "wind_speed", "wind_direction_deg"]
REQUIRED_FIELDS = ["date"] + NUMERIC_FIELDS


def normalize_column(name: str) -> str | None:
    """Map an external column name to a WeatherRecord field, if known."""
    key = re.sub(r"[^a-z0-9]", "", str(name).lower())
    return COLUMN_ALIASES.get(key)


def _frame_to_records(df: pd.DataFrame) -> list[WeatherRecord]:
    """Coerce a raw frame into sorted records, dropping unparseable rows."""
    renamed = {}
    for column in df.columns:
        field = normalize_column(column)
        if field is not None and field not in renamed.values():
            renamed[column] = field
    df = df[list(renamed)].rename(columns=renamed)

    missing = [f for f in REQUIRED_FIELDS if f not in df.columns]
    if missing:
        raise ValueError(f"Weather data missing columns: {', '.join(missing)}")

    dates = pd.to_datetime(df["date"], errors="coerce")
    if isinstance(dates.dtype, pd.DatetimeTZDtype):
        dates = dates.dt.tz_localize(None)
    parsed = pd.DataFrame({"date": dates})
    for field in NUMERIC_FIELDS:
        parsed[field] = pd.to_numeric(df[field], errors="coerce")

    valid = parsed.dropna()
    dropped = len(parsed) - len(valid)
    if dropped:
        logger.debug("Skipped %d weather rows with missing or invalid values", dropped)

    valid = valid.sort_values("date", kind="stable")
    return [
        WeatherRecord(
            date=row.date.to_pydatetime(),
            temperature=float(row.temperature),
            dew_point=float(row.dew_point),
            wind_speed=float(row.wind_speed),
            wind_direction_deg=float(row.wind_direction_deg),
        )
        for row in valid.itertuples(index=False)
    ]


def load_weather_csv(source) -> list[WeatherRecord]:
    """Load a weather series from a CSV file path or text buffer.

    The first row is the header. Rows with the wrong number of fields or
    values that do not parse are skipped.

    Returns:
        Records sorted by date; empty if the file has no data rows.

    Raises:
        ValueError: If a required column is missing.
    """
    try:
        df = pd.read_csv(
            source,
            dtype=str,
            skipinitialspace=True,
            on_bad_lines="skip",
        )
    except pd.errors.EmptyDataError:
        return []
    if df.empty:
        return []
    return _frame_to_records(df)


def records_from_rows(rows: Iterable[Mapping]) -> list[WeatherRecord]:
    """Build records from already-split rows with any column naming."""
    df = pd.DataFrame.from_records(list(rows))
    if df.empty:
        return []
    return _frame_to_records(df)


def interpolate_direction(start: float, end: float, fraction: float) -> float:
    """Interpolate between two compass directions along the shorter arc.

    Returns:
        Direction in degrees [0, 360)
    """
    delta = end - start
    if delta > 180:
        start += 360
    elif delta < -180:
        end += 360
    return (start + (end - start) * fraction) % 360


def _lerp(a: float, b: float, fraction: float) -> float:
    return a + (b - a) * fraction


def weather_at(clock_time: datetime, series: Sequence[WeatherRecord]) -> WeatherRecord | None:
    """Weather conditions at a clock time.

    Interpolates linearly between the records bracketing the time, and
    circularly for wind direction. Outside the series the nearest end record
    is returned as-is, as is a record whose timestamp matches exactly.

    Args:
        clock_time: Simulated time of day
        series: Records sorted ascending by date

    Returns:
        A WeatherRecord dated at clock_time, or None for an empty series.
    """
    if not series:
        return None

    prev = None
    following = None
    for record in series:
        if record.date == clock_time:
            return record
        if record.date < clock_time:
            prev = record
        else:
            following = record
            break

    if prev is None:
        return series[0]
    if following is None:
        return prev

    span = (following.date - prev.date).total_seconds()
    fraction = (clock_time - prev.date).total_seconds() / span

    return WeatherRecord(
        date=clock_time,
        temperature=_lerp(prev.temperature, following.temperature, fraction),
        dew_point=_lerp(prev.dew_point, following.dew_point, fraction),
        wind_speed=_lerp(prev.wind_speed, following.wind_speed, fraction),
        wind_direction_deg=interpolate_direction(
            prev.wind_direction_deg, following.wind_direction_deg, fraction
        ),
    )
