"""Error types raised by the zone session and the WFS-T sync client."""

from __future__ import annotations

from typing import Optional


class ZoneSyncError(Exception):
    """Base class for zone synchronization errors."""


class LoadError(ZoneSyncError):
    """Fetching or parsing the remote zone set failed. Local state is untouched."""


class SaveError(ZoneSyncError):
    """Submitting a transaction failed. Pending changes are preserved."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NoChangesError(ZoneSyncError):
    """Save was requested with nothing pending. Not a failure."""


class SaveInProgressError(ZoneSyncError):
    """A save is already in flight for this session."""


class UnsupportedGeometryError(ZoneSyncError):
    """Geometry type cannot be encoded to GML."""

    def __init__(self, geometry_type: str):
        super().__init__(f"Unsupported geometry type: {geometry_type}")
        self.geometry_type = geometry_type
