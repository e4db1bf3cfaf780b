"""Encode GeoJSON geometries as GML 3.1 fragments for WFS-T payloads.

Uses only xml.etree.ElementTree (stdlib). Elements are built with prefixed
tag names ("gml:Polygon"); the enclosing transaction declares the prefixes.

Coordinate order:
    Polygon / MultiPolygon rings are written "lat lon" (EPSG:4326 axis order).
    Point positions are written "x y" exactly as stored. Existing servers
    depend on this, so it is kept as is.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Optional

from loguru import logger

from zonesync.errors import UnsupportedGeometryError

GML_SRS_NAME = "urn:x-ogc:def:crs:EPSG:4326"


def encode_geometry(
    geometry: dict,
    srs_name: str = GML_SRS_NAME,
    member_per_polygon: bool = False,
) -> Optional[ET.Element]:
    """Encode a GeoJSON geometry dict as a GML element.

    Args:
        geometry: {"type": ..., "coordinates": ...}
        srs_name: srsName attribute set on the geometry element.
        member_per_polygon: For MultiPolygon, wrap each polygon in its own
            gml:polygonMember instead of one member around all of them.

    Returns:
        The GML element, or None when the geometry can't be encoded (the
        problem is logged).
    """
    geom_type = geometry.get("type") if isinstance(geometry, dict) else None
    try:
        if geom_type == "Polygon":
            return _polygon(geometry.get("coordinates"), srs_name)
        if geom_type == "MultiPolygon":
            return _multipolygon(geometry.get("coordinates"), srs_name, member_per_polygon)
        if geom_type == "Point":
            return _point(geometry.get("coordinates"), srs_name)
        raise UnsupportedGeometryError(str(geom_type))
    except UnsupportedGeometryError as e:
        logger.warning(f"{e}, geometry skipped")
    except ValueError as e:
        logger.warning(f"Invalid {geom_type} geometry, skipped: {e}")
    return None


def geometry_to_gml(geometry: dict, **kwargs) -> str:
    """Encode a geometry to a GML string. Returns "" if it can't be encoded."""
    elem = encode_geometry(geometry, **kwargs)
    if elem is None:
        return ""
    return ET.tostring(elem, encoding="unicode")


def format_ordinate(value) -> str:
    """Shortest round-trip text for a number; integral floats lose the '.0'."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Coordinate is not a number: {value!r}")
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return repr(value)


def _position(coord) -> tuple:
    if not isinstance(coord, (list, tuple)) or len(coord) < 2:
        raise ValueError(f"Bad position: {coord!r}")
    return coord[0], coord[1]


def _pos_list(ring) -> str:
    """Render a ring of [lng, lat] positions as 'lat lng lat lng ...'."""
    if not isinstance(ring, (list, tuple)) or not ring:
        raise ValueError("Empty ring")
    parts = []
    for coord in ring:
        lng, lat = _position(coord)
        parts.append(f"{format_ordinate(lat)} {format_ordinate(lng)}")
    return " ".join(parts)


def _exterior_ring(rings) -> list:
    # Holes are not written, only the first (outer) ring
    if not isinstance(rings, (list, tuple)) or not rings:
        raise ValueError("Polygon has no rings")
    return rings[0]


def _polygon(rings, srs_name: str) -> ET.Element:
    polygon = ET.Element("gml:Polygon", {"srsName": srs_name})
    exterior = ET.SubElement(polygon, "gml:exterior")
    linear_ring = ET.SubElement(exterior, "gml:LinearRing")
    pos_list = ET.SubElement(linear_ring, "gml:posList")
    pos_list.text = _pos_list(_exterior_ring(rings))
    return polygon


def _multipolygon(polygons, srs_name: str, member_per_polygon: bool) -> ET.Element:
    if not isinstance(polygons, (list, tuple)) or not polygons:
        raise ValueError("MultiPolygon has no polygons")

    multi = ET.Element("gml:MultiPolygon", {"srsName": srs_name})
    if member_per_polygon:
        for rings in polygons:
            member = ET.SubElement(multi, "gml:polygonMember")
            member.append(_polygon(rings, srs_name))
    else:
        member = ET.SubElement(multi, "gml:polygonMember")
        for rings in polygons:
            member.append(_polygon(rings, srs_name))
    return multi


def _point(coordinates, srs_name: str) -> ET.Element:
    x, y = _position(coordinates)
    point = ET.Element("gml:Point", {"srsName": srs_name})
    pos = ET.SubElement(point, "gml:pos")
    pos.text = f"{format_ordinate(x)} {format_ordinate(y)}"
    return point
