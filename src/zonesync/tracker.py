"""ChangeTracker — three-way diff of a zone collection against the last
server snapshot.

Every tracked id maps to exactly one ZoneStatus, so an id can never be both
inserted and modified. Each edit also stamps the id with a revision taken
from a monotonic counter; a save compares revisions to tell which ids were
edited again while its request was in flight.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from loguru import logger


class ZoneStatus(str, Enum):
    """Sync status of a zone relative to the last server snapshot."""
    UNCHANGED = "unchanged"
    INSERTED = "inserted"   # created locally, not on the server yet
    MODIFIED = "modified"   # on the server, changed locally
    DELETED = "deleted"     # on the server, removed locally


@dataclass
class ChangeSet:
    """Pending ids grouped by operation, in tracking order."""

    inserted: list[str] = field(default_factory=list)
    modified: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.inserted or self.modified or self.deleted)

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "inserted": list(self.inserted),
            "modified": list(self.modified),
            "deleted": list(self.deleted),
        }


class ChangeTracker:
    """Tracks inserted / modified / deleted zone ids."""

    def __init__(self, baseline_ids: Iterable[str] = ()) -> None:
        self._status: dict[str, ZoneStatus] = {}
        self._revisions: dict[str, int] = {}
        self._clock = 0
        self.reset(baseline_ids)

    def reset(self, baseline_ids: Iterable[str] = ()) -> None:
        """Forget every pending change; baseline ids become UNCHANGED."""
        self._status = {zone_id: ZoneStatus.UNCHANGED for zone_id in baseline_ids}
        self._revisions = {}

    # ==================
    # Queries
    # ==================

    def status(self, zone_id: str) -> Optional[ZoneStatus]:
        """Status of an id, or None if it isn't tracked."""
        return self._status.get(zone_id)

    def revision(self, zone_id: str) -> int:
        """Revision of the last tracked edit to an id (0 if never edited)."""
        return self._revisions.get(zone_id, 0)

    def pending_statuses(self) -> dict[str, ZoneStatus]:
        """Every id with a status other than UNCHANGED."""
        return {
            zone_id: status
            for zone_id, status in self._status.items()
            if status is not ZoneStatus.UNCHANGED
        }

    @property
    def has_pending(self) -> bool:
        return any(s is not ZoneStatus.UNCHANGED for s in self._status.values())

    def pending(self) -> ChangeSet:
        changes = ChangeSet()
        for zone_id, status in self._status.items():
            if status is ZoneStatus.INSERTED:
                changes.inserted.append(zone_id)
            elif status is ZoneStatus.MODIFIED:
                changes.modified.append(zone_id)
            elif status is ZoneStatus.DELETED:
                changes.deleted.append(zone_id)
        return changes

    def snapshot(self) -> dict[str, list[str]]:
        """Pending ids as plain lists, for inspection."""
        return self.pending().to_dict()

    # ==================
    # Tracked edits
    # ==================

    def record_insert(self, zone_id: str) -> ZoneStatus:
        """Track a locally created zone.

        An id that is pending deletion still exists on the server, so
        re-adding it becomes an update.
        """
        current = self._status.get(zone_id)
        if current in (ZoneStatus.DELETED, ZoneStatus.MODIFIED, ZoneStatus.UNCHANGED):
            status = ZoneStatus.MODIFIED
        else:
            status = ZoneStatus.INSERTED
        self.mark(zone_id, status)
        return status

    def record_modify(self, zone_id: str) -> Optional[ZoneStatus]:
        """Track a local change to an existing zone.

        Inserted zones stay inserted. Returns the resulting status, or None
        if the id is not tracked.
        """
        current = self._status.get(zone_id)
        if current is None or current is ZoneStatus.DELETED:
            logger.debug(f"Ignoring modify of untracked zone {zone_id}")
            return None
        status = ZoneStatus.INSERTED if current is ZoneStatus.INSERTED else ZoneStatus.MODIFIED
        self.mark(zone_id, status)
        return status

    def record_delete(self, zone_id: str) -> Optional[ZoneStatus]:
        """Track a local deletion.

        A zone that was never persisted is dropped from tracking instead of
        being scheduled for deletion. Returns the resulting status (None when
        the id is no longer tracked).
        """
        current = self._status.get(zone_id)
        if current is None:
            logger.debug(f"Ignoring delete of untracked zone {zone_id}")
            return None
        if current is ZoneStatus.INSERTED:
            self.forget(zone_id)
            return None
        self.mark(zone_id, ZoneStatus.DELETED)
        return ZoneStatus.DELETED

    # ==================
    # Low-level state changes
    # ==================

    def mark(self, zone_id: str, status: ZoneStatus) -> None:
        """Set a status and stamp a new revision."""
        self._clock += 1
        self._status[zone_id] = status
        self._revisions[zone_id] = self._clock

    def forget(self, zone_id: str) -> None:
        """Stop tracking an id. Its revision still moves forward."""
        self._clock += 1
        self._status.pop(zone_id, None)
        self._revisions[zone_id] = self._clock

    def rekey(self, zone_id: str, new_id: str) -> None:
        """Move an id's status and revision onto a new id."""
        status = self._status.pop(zone_id, None)
        if status is not None:
            self._status[new_id] = status
        revision = self._revisions.pop(zone_id, None)
        if revision is not None:
            self._revisions[new_id] = revision

    def settle(self, zone_id: str, revision: int) -> bool:
        """Clear a saved change if the id was not edited since `revision`.

        Returns:
            True if the change was cleared, False if a newer edit is pending.
        """
        if self.revision(zone_id) != revision:
            return False
        status = self._status.get(zone_id)
        if status is ZoneStatus.DELETED:
            self._status.pop(zone_id, None)
        elif status is not None:
            self._status[zone_id] = ZoneStatus.UNCHANGED
        self._revisions.pop(zone_id, None)
        return True
