"""Parse a GeoJSON (RFC 7946) GetFeature response into zones.

Handles FeatureCollection and a bare Feature. Coordinates are already in
[lng, lat] order and are kept as they are.
"""

from __future__ import annotations

import json
from typing import Union

from loguru import logger

from zonesync.errors import LoadError
from zonesync.zone import Zone


def parse_feature_collection(content: Union[str, bytes, dict]) -> list[Zone]:
    """Parse GeoJSON content into a list of zones.

    Features that can't be turned into a zone (no id, no geometry) are
    skipped with a warning.

    Args:
        content: Raw GeoJSON text, or an already decoded dict.

    Returns:
        Zones in document order.

    Raises:
        LoadError: If the content isn't JSON or isn't a Feature/FeatureCollection.
    """
    if isinstance(content, dict):
        data = content
    else:
        try:
            data = json.loads(content)
        except (json.JSONDecodeError, TypeError, UnicodeDecodeError) as e:
            raise LoadError(f"Invalid GeoJSON: {e}") from e

    if not isinstance(data, dict):
        raise LoadError("Invalid GeoJSON: expected an object")

    kind = data.get("type")
    if kind == "FeatureCollection":
        raw_features = data.get("features")
        if raw_features is None:
            raw_features = []
        if not isinstance(raw_features, list):
            raise LoadError("Invalid GeoJSON: 'features' is not a list")
    elif kind == "Feature":
        raw_features = [data]
    else:
        raise LoadError(f"Invalid GeoJSON: unexpected type {kind!r}")

    zones: list[Zone] = []
    for idx, raw in enumerate(raw_features):
        try:
            zones.append(Zone.from_feature(raw))
        except ValueError as e:
            logger.warning(f"Skipping feature #{idx}: {e}")
    return zones
