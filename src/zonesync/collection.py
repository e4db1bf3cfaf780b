"""ZoneCollection — in-memory set of zones keyed by identity.

Insertion order is preserved; it is the order zones are emitted in a
transaction group.
"""

from __future__ import annotations

import dataclasses
from typing import Iterable, Iterator, Optional

from zonesync.zone import Zone


class ZoneCollection:
    """Registry of the zones in an edit session."""

    def __init__(self, zones: Iterable[Zone] = ()) -> None:
        self._zones: dict[str, Zone] = {}
        for zone in zones:
            self._zones[zone.zone_id] = zone

    def __len__(self) -> int:
        return len(self._zones)

    def __iter__(self) -> Iterator[Zone]:
        return iter(list(self._zones.values()))

    def __contains__(self, zone_id: object) -> bool:
        return zone_id in self._zones

    def insert(self, zone: Zone) -> None:
        """Add a zone. An existing zone with the same id is replaced."""
        self._zones[zone.zone_id] = zone

    def update(self, zone: Zone) -> bool:
        """Replace the zone with the same id.

        Returns:
            True if a zone was replaced, False if the id is unknown.
        """
        if zone.zone_id not in self._zones:
            return False
        self._zones[zone.zone_id] = zone
        return True

    def remove(self, zone_id: str) -> Optional[Zone]:
        """Remove a zone by id and return it, or None if it didn't exist."""
        return self._zones.pop(zone_id, None)

    def rename(self, zone_id: str, new_id: str) -> bool:
        """Move a zone onto a new id, keeping its position.

        Returns:
            True if the zone was renamed, False if the id is unknown.
        """
        if zone_id not in self._zones:
            return False
        renamed: dict[str, Zone] = {}
        for key, zone in self._zones.items():
            if key == zone_id:
                renamed[new_id] = dataclasses.replace(zone, zone_id=new_id)
            elif key != new_id:
                renamed[key] = zone
        self._zones = renamed
        return True

    def get(self, zone_id: str) -> Optional[Zone]:
        return self._zones.get(zone_id)

    def ids(self) -> list[str]:
        return list(self._zones)

    def list_zones(self) -> list[Zone]:
        return list(self._zones.values())

    def replace_all(self, zones: Iterable[Zone]) -> None:
        """Swap the whole content for a fresh snapshot."""
        self._zones = {zone.zone_id: zone for zone in zones}
