"""Parsers for server responses: GeoJSON feature sets, WFS-T transaction results."""

from zonesync.parsers.geojson import parse_feature_collection
from zonesync.parsers.transaction import parse_transaction_response

__all__ = ["parse_feature_collection", "parse_transaction_response"]
