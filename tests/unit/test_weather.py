import io
from datetime import datetime

import pytest

from race_replay.models import WeatherRecord
from race_replay.weather import (
    interpolate_direction,
    load_weather_csv,
    normalize_column,
    records_from_rows,
    weather_at,
)


class TestInterpolateDirection:
    def test_wraps_through_north(self):
        assert interpolate_direction(350.0, 10.0, 0.5) == pytest.approx(0.0)

    def test_wraps_other_way(self):
        assert interpolate_direction(10.0, 350.0, 0.5) == pytest.approx(0.0)

    def test_plain_interpolation(self):
        assert interpolate_direction(90.0, 180.0, 0.5) == pytest.approx(135.0)

    def test_result_in_range(self):
        for fraction in (0.0, 0.25, 0.75, 1.0):
            result = interpolate_direction(300.0, 40.0, fraction)
            assert 0.0 <= result < 360.0

    def test_endpoints(self):
        assert interpolate_direction(350.0, 10.0, 0.0) == pytest.approx(350.0)
        assert interpolate_direction(350.0, 10.0, 1.0) == pytest.approx(10.0)


class TestWeatherAt:
    def test_empty_series(self):
        assert weather_at(datetime(2024, 11, 9, 7, 30), []) is None

    def test_exact_match_returned_verbatim(self, weather_series):
        assert weather_at(datetime(2024, 11, 9, 8, 0), weather_series) is weather_series[1]

    def test_before_first_record(self, weather_series):
        assert weather_at(datetime(2024, 11, 9, 6, 0), weather_series) is weather_series[0]

    def test_after_last_record(self, weather_series):
        assert weather_at(datetime(2024, 11, 9, 12, 0), weather_series) is weather_series[-1]

    def test_interpolates_between_records(self, weather_series):
        t = datetime(2024, 11, 9, 7, 30)
        w = weather_at(t, weather_series)
        assert w.date == t
        assert w.temperature == pytest.approx(53.0)
        assert w.dew_point == pytest.approx(42.0)
        assert w.wind_speed == pytest.approx(6.0)
        assert w.wind_direction_deg == pytest.approx(0.0)

    def test_uses_tightest_bracket(self, weather_series):
        w = weather_at(datetime(2024, 11, 9, 8, 15), weather_series)
        assert w.temperature == pytest.approx(57.5)
        assert w.wind_direction_deg == pytest.approx(30.0)


class TestNormalizeColumn:
    @pytest.mark.parametrize(
        "name,field",
        [
            ("Date", "date"),
            ("temperature", "temperature"),
            ("Temp", "temperature"),
            ("dewPoint", "dew_point"),
            ("Dew Point", "dew_point"),
            ("wind_speed", "wind_speed"),
            ("windDirection", "wind_direction_deg"),
            ("windDirectionDeg", "wind_direction_deg"),
            ("humidity", None),
        ],
    )
    def test_aliases(self, name, field):
        assert normalize_column(name) == field


CSV_TEXT = """date,temperature,dewPoint,windSpeed,windDirection
2024-11-09 08:00,56,44,8,10
2024-11-09 07:00,50,40,4,350
2024-11-09 09:00,62,46,10,90
"""


class TestLoadWeatherCsv:
    def test_load(self):
        records = load_weather_csv(io.StringIO(CSV_TEXT))
        assert len(records) == 3
        assert records[0] == WeatherRecord(datetime(2024, 11, 9, 7, 0), 50.0, 40.0, 4.0, 350.0)

    def test_sorted_by_date(self):
        records = load_weather_csv(io.StringIO(CSV_TEXT))
        dates = [r.date for r in records]
        assert dates == sorted(dates)

    def test_from_path(self, tmp_path):
        path = tmp_path / "weather.csv"
        path.write_text(CSV_TEXT)
        assert len(load_weather_csv(str(path))) == 3

    def test_skips_invalid_rows(self):
        text = (
            "date,temperature,dewPoint,windSpeed,windDirection\n"
            "2024-11-09 07:00,50,40,4,350\n"
            "2024-11-09 07:30,warm,40,4,350\n"
            "2024-11-09 08:00,56,44\n"
            "2024-11-09 08:30,57,44,8,10,extra\n"
            "2024-11-09 09:00,62,46,10,90\n"
        )
        records = load_weather_csv(io.StringIO(text))
        assert [r.temperature for r in records] == [50.0, 62.0]

    def test_header_only(self):
        assert load_weather_csv(io.StringIO("date,temperature,dewPoint,windSpeed,windDirection\n")) == []

    def test_empty(self):
        assert load_weather_csv(io.StringIO("")) == []

    def test_missing_column(self):
        with pytest.raises(ValueError, match="dew_point"):
            load_weather_csv(io.StringIO("date,temperature,windSpeed,windDirection\n2024-11-09,50,4,350\n"))


class TestRecordsFromRows:
    def test_mixed_naming(self):
        rows = [
            {"Date": datetime(2024, 11, 9, 7, 0), "Temp": 50, "Dew Point": 40, "Wind Speed": 4, "Wind Dir": 350},
            {"Date": datetime(2024, 11, 9, 8, 0), "Temp": "56", "Dew Point": "44", "Wind Speed": "8", "Wind Dir": "10"},
        ]
        records = records_from_rows(rows)
        assert len(records) == 2
        assert records[1].date == datetime(2024, 11, 9, 8, 0)
        assert records[1].temperature == 56.0

    def test_empty(self):
        assert records_from_rows([]) == []
