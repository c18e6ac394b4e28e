"""GPX track parsing.

Turns raw GPX text into an ordered list of TrackSegment records. Parsing is
total: any rejected or malformed input yields an empty list and a logged
warning, never an exception.
"""

import logging
import math
from typing import Optional

from lxml import etree

from hiking_map.config import MAX_GPX_BYTES
from hiking_map.core.geo import distance_km
from hiking_map.models import TrackSegment

logger = logging.getLogger(__name__)


def _parser() -> etree.XMLParser:
    # No entity expansion, no network, no huge-tree mode for user-supplied files.
    return etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        huge_tree=False,
        remove_comments=True,
    )


def _descendants_named(element, name: str) -> list:
    """All descendants of `element` whose local tag name is `name`, in document order."""
    return element.xpath(".//*[local-name()=$name]", name=name)


def _parse_float(raw: Optional[str]) -> Optional[float]:
    if raw is None:
        return None
    try:
        value = float(raw.strip())
    except (TypeError, ValueError):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def _parse_segment(trkseg) -> TrackSegment:
    points: list[tuple[float, float]] = []
    total = 0.0
    min_ele: Optional[float] = None
    max_ele: Optional[float] = None

    for i, trkpt in enumerate(_descendants_named(trkseg, "trkpt")):
        lat = _parse_float(trkpt.get("lat"))
        lon = _parse_float(trkpt.get("lon"))
        if lat is None or lon is None:
            logger.debug("Skipping track point %d without a valid lat/lon", i)
            continue

        ele_elements = _descendants_named(trkpt, "ele")
        if ele_elements:
            elevation = _parse_float(ele_elements[0].text)
            if elevation is not None:
                min_ele = elevation if min_ele is None else min(min_ele, elevation)
                max_ele = elevation if max_ele is None else max(max_ele, elevation)

        if points:
            prev_lat, prev_lon = points[-1]
            total += distance_km(prev_lat, prev_lon, lat, lon)
        points.append((lat, lon))

    return TrackSegment(
        points=points,
        distance_km=total,
        min_elevation_m=min_ele,
        max_elevation_m=max_ele,
    )


def parse_gpx(xml_text: str) -> list[TrackSegment]:
    """Parse GPX text into track segments in document order.

    Every <trk>/<trkseg> becomes one segment; points without a parseable
    lat/lon are skipped and segments left with no points are dropped.
    Returns [] when the text is over the size limit, lacks the <gpx> root
    markers, or is not well-formed XML.
    """
    if not isinstance(xml_text, str):
        logger.warning("Rejecting GPX content of type %s", type(xml_text).__name__)
        return []

    try:
        data = xml_text.encode("utf-8")
    except UnicodeEncodeError as e:
        logger.warning("GPX content is not encodable as UTF-8: %s", e)
        return []
    if len(data) > MAX_GPX_BYTES:
        logger.warning(
            "GPX file too large (%d bytes). Maximum size is %d bytes.", len(data), MAX_GPX_BYTES
        )
        return []

    if "<gpx" not in xml_text or "</gpx>" not in xml_text:
        logger.warning("Invalid GPX file format: missing <gpx> root element")
        return []

    try:
        root = etree.fromstring(data, _parser())
    except (etree.XMLSyntaxError, ValueError) as e:
        logger.warning("Invalid XML format in GPX file: %s", e)
        return []

    segments: list[TrackSegment] = []
    for trk in _descendants_named(root, "trk"):
        for trkseg in _descendants_named(trk, "trkseg"):
            segment = _parse_segment(trkseg)
            if segment.points:
                segments.append(segment)

    logger.debug("Parsed %d segment(s) from GPX", len(segments))
    return segments
