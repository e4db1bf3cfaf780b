"""Zone dataclass — one editable geospatial feature.

All coordinates are stored in GeoJSON convention: [lng, lat].
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field

# Geometry types the GML encoder knows how to write
SUPPORTED_GEOMETRIES = ("Point", "Polygon", "MultiPolygon")


@dataclass
class Zone:
    """A single zone (point, polygon or multipolygon) in an edit session.

    Attributes:
        zone_id: Feature id. Server-assigned once persisted, a client
            temporary id before the first save.
        geometry_type: One of "Point", "Polygon", "MultiPolygon". Other
            GeoJSON types can be held but are not encodable.
        coordinates: GeoJSON-style coordinate arrays.
            Point: [lng, lat]
            Polygon: [[[lng, lat], [lng, lat], ...]]  (list of rings)
            MultiPolygon: [[[[lng, lat], ...]], ...]  (list of polygons)
        properties: String metadata. "name" and "type" are optional here;
            defaults are applied when a transaction is compiled.
    """

    zone_id: str
    geometry_type: str
    coordinates: list
    properties: dict = field(default_factory=dict)

    @property
    def geometry(self) -> dict:
        """GeoJSON geometry dict."""
        return {"type": self.geometry_type, "coordinates": self.coordinates}

    @property
    def is_supported(self) -> bool:
        return self.geometry_type in SUPPORTED_GEOMETRIES

    def copy(self) -> Zone:
        """Deep copy, detached from later in-place edits."""
        return Zone(
            zone_id=self.zone_id,
            geometry_type=self.geometry_type,
            coordinates=copy.deepcopy(self.coordinates),
            properties=dict(self.properties),
        )

    def to_feature(self) -> dict:
        """Convert to a GeoJSON Feature dict."""
        return {
            "type": "Feature",
            "id": self.zone_id,
            "geometry": self.geometry,
            "properties": dict(self.properties),
        }

    @classmethod
    def from_feature(cls, data: dict) -> Zone:
        """Build a Zone from a GeoJSON Feature dict.

        Raises:
            ValueError: If the feature has no id or no usable geometry.
        """
        if not isinstance(data, dict):
            raise ValueError("Feature must be an object")

        zone_id = data.get("id")
        if zone_id is None or zone_id == "":
            raise ValueError("Feature has no id")

        geometry = data.get("geometry")
        if not isinstance(geometry, dict):
            raise ValueError(f"Feature {zone_id} has no geometry")

        geom_type = geometry.get("type")
        coordinates = geometry.get("coordinates")
        if not isinstance(geom_type, str) or coordinates is None:
            raise ValueError(f"Feature {zone_id} has an invalid geometry")

        properties = data.get("properties") or {}
        if not isinstance(properties, dict):
            properties = {}

        return cls(
            zone_id=str(zone_id),
            geometry_type=geom_type,
            coordinates=coordinates,
            properties={str(k): v for k, v in properties.items()},
        )
