"""Zone edit tracking and WFS-T synchronization.

Tracks inserted / modified / deleted zones in a session and saves them to a
WFS server as a single transaction. Geometries are encoded to GML with
xml.etree.ElementTree; HTTP goes through httpx.
"""

from zonesync.collection import ZoneCollection
from zonesync.errors import (
    LoadError,
    NoChangesError,
    SaveError,
    SaveInProgressError,
    UnsupportedGeometryError,
    ZoneSyncError,
)
from zonesync.mode import InteractionMode
from zonesync.session import LoadState, SaveBatch, SaveState, ZoneSession
from zonesync.sync import SaveResult, SyncClient
from zonesync.tracker import ChangeSet, ChangeTracker, ZoneStatus
from zonesync.zone import Zone

__all__ = [
    "ChangeSet",
    "ChangeTracker",
    "InteractionMode",
    "LoadError",
    "LoadState",
    "NoChangesError",
    "SaveBatch",
    "SaveError",
    "SaveInProgressError",
    "SaveResult",
    "SaveState",
    "SyncClient",
    "UnsupportedGeometryError",
    "Zone",
    "ZoneCollection",
    "ZoneSession",
    "ZoneStatus",
    "ZoneSyncError",
]
