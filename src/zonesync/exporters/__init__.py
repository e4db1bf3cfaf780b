"""Zone exporters: GML geometries, WFS-T transactions, GeoJSON."""

from zonesync.exporters.geojson import export_geojson
from zonesync.exporters.gml import encode_geometry, geometry_to_gml
from zonesync.exporters.wfst import NO_CHANGES, compile_transaction

__all__ = [
    "NO_CHANGES",
    "compile_transaction",
    "encode_geometry",
    "export_geojson",
    "geometry_to_gml",
]
