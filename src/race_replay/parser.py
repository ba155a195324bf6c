import logging
import math
from pathlib import Path

import gpxpy
from lxml import etree

from race_replay.models import GeoPoint

logger = logging.getLogger(__name__)


def parse_coordinates(text: str) -> list[GeoPoint]:
    """Parse KML coordinate text into points.

    Entries are whitespace separated "lon,lat[,alt]" tuples. Altitude is
    ignored and entries without two numeric values are dropped.
    """
    points: list[GeoPoint] = []
    for entry in text.split():
        parts = entry.split(",")
        if len(parts) < 2:
            continue
        try:
            lng = float(parts[0])
            lat = float(parts[1])
        except ValueError:
            continue
        if not (math.isfinite(lat) and math.isfinite(lng)):
            continue
        points.append(GeoPoint(lat=lat, lng=lng))
    return points


def parse_kml(kml_text: str | bytes) -> list[GeoPoint]:
    """Extract the route from the first <coordinates> element of a KML document.

    Raises:
        lxml.etree.XMLSyntaxError: If the document is not well-formed XML.
    """
    if isinstance(kml_text, str):
        kml_text = kml_text.encode("utf-8")
    root = etree.fromstring(kml_text)
    nodes = root.xpath("//*[local-name()='coordinates']")
    if not nodes:
        logger.warning("No <coordinates> element found in KML document")
        return []
    return parse_coordinates(nodes[0].text or "")


def parse_gpx(filepath: str) -> list[GeoPoint]:
    """Parse a GPX file into points, from its tracks or else its routes."""
    with open(filepath, "r") as f:
        gpx = gpxpy.parse(f)

    points: list[GeoPoint] = []
    for track in gpx.tracks:
        for segment in track.segments:
            for pt in segment.points:
                points.append(GeoPoint(lat=pt.latitude, lng=pt.longitude))
    if not points:
        for route in gpx.routes:
            for pt in route.points:
                points.append(GeoPoint(lat=pt.latitude, lng=pt.longitude))
    return points


def load_route(filepath: str) -> list[GeoPoint]:
    """Load a route from a .kml or .gpx file."""
    path = Path(filepath)
    if path.suffix.lower() == ".gpx":
        return parse_gpx(filepath)
    return parse_kml(path.read_bytes())
