import pytest
from lxml import etree

from race_replay.models import GeoPoint
from race_replay.parser import load_route, parse_coordinates, parse_gpx, parse_kml

KML_TEXT = """<?xml version="1.0" encoding="UTF-8"?>
<kml xmlns="http://www.opengis.net/kml/2.2">
  <Document>
    <Placemark>
      <name>Race Route</name>
      <LineString>
        <coordinates>
          -80.8431,35.2271,0 -80.8430,35.2290,0
          -80.8425,35.2310,12.5
        </coordinates>
      </LineString>
    </Placemark>
  </Document>
</kml>"""

GPX_TEXT = """<?xml version="1.0"?>
<gpx version="1.1" xmlns="http://www.topografix.com/GPX/1/1">
  <trk><trkseg>
    <trkpt lat="35.2271" lon="-80.8431"><ele>200</ele></trkpt>
    <trkpt lat="35.2290" lon="-80.8430"><ele>201</ele></trkpt>
  </trkseg></trk>
</gpx>"""

GPX_ROUTE_TEXT = """<?xml version="1.0"?>
<gpx version="1.1" xmlns="http://www.topografix.com/GPX/1/1">
  <rte>
    <rtept lat="35.2271" lon="-80.8431"></rtept>
    <rtept lat="35.2290" lon="-80.8430"></rtept>
    <rtept lat="35.2310" lon="-80.8425"></rtept>
  </rte>
</gpx>"""


class TestParseCoordinates:
    def test_lon_lat_order(self):
        assert parse_coordinates("-80.8431,35.2271") == [GeoPoint(lat=35.2271, lng=-80.8431)]

    def test_altitude_ignored(self):
        assert parse_coordinates("-80.8,35.2,150.0") == [GeoPoint(lat=35.2, lng=-80.8)]

    def test_invalid_entries_dropped(self):
        text = "-80.8,35.2 garbage -80.7,abc -80.6,35.4\n\t-80.5,35.5"
        assert parse_coordinates(text) == [
            GeoPoint(lat=35.2, lng=-80.8),
            GeoPoint(lat=35.4, lng=-80.6),
            GeoPoint(lat=35.5, lng=-80.5),
        ]

    def test_empty(self):
        assert parse_coordinates("") == []


class TestParseKml:
    def test_parse(self):
        points = parse_kml(KML_TEXT)
        assert len(points) == 3
        assert points[0] == GeoPoint(lat=35.2271, lng=-80.8431)
        assert points[2] == GeoPoint(lat=35.2310, lng=-80.8425)

    def test_no_coordinates(self, caplog):
        points = parse_kml('<kml xmlns="http://www.opengis.net/kml/2.2"><Document/></kml>')
        assert points == []
        assert "No <coordinates>" in caplog.text

    def test_malformed_xml(self):
        with pytest.raises(etree.XMLSyntaxError):
            parse_kml("<kml><coordinates>")


class TestParseGpx:
    def test_track_points(self, tmp_path):
        path = tmp_path / "route.gpx"
        path.write_text(GPX_TEXT)
        points = parse_gpx(str(path))
        assert points == [
            GeoPoint(lat=35.2271, lng=-80.8431),
            GeoPoint(lat=35.2290, lng=-80.8430),
        ]

    def test_route_points(self, tmp_path):
        path = tmp_path / "route.gpx"
        path.write_text(GPX_ROUTE_TEXT)
        assert len(parse_gpx(str(path))) == 3


class TestLoadRoute:
    def test_kml_by_suffix(self, tmp_path):
        path = tmp_path / "route.kml"
        path.write_text(KML_TEXT)
        assert len(load_route(str(path))) == 3

    def test_gpx_by_suffix(self, tmp_path):
        path = tmp_path / "route.GPX"
        path.write_text(GPX_TEXT)
        assert len(load_route(str(path))) == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_route(str(tmp_path / "missing.kml"))
