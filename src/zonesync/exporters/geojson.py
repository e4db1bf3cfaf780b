"""Export zones to a GeoJSON FeatureCollection dict (RFC 7946).

GeoJSON coordinates are [lng, lat], already the internal storage convention.
"""

from __future__ import annotations

from typing import Iterable

from zonesync.zone import Zone


def export_geojson(zones: Iterable[Zone]) -> dict:
    """Export zones to a GeoJSON FeatureCollection dict."""
    return {
        "type": "FeatureCollection",
        "features": [zone.to_feature() for zone in zones],
    }
