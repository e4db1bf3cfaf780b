"""ZoneSession — the caller-owned edit session.

Holds the zone collection, its change tracker and the interaction mode, and
applies every edit to the collection and the tracker in the same step. The
sync client drives the load/save state transitions through it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from loguru import logger

from zonesync.collection import ZoneCollection
from zonesync.errors import NoChangesError, SaveInProgressError
from zonesync.mode import InteractionMode
from zonesync.tracker import ChangeTracker, ZoneStatus
from zonesync.zone import Zone


class LoadState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    LOAD_FAILED = "load_failed"


class SaveState(str, Enum):
    CLEAN = "clean"
    DIRTY = "dirty"
    SAVING = "saving"
    SAVED = "saved"
    SAVE_FAILED = "save_failed"


@dataclass
class SaveBatch:
    """Point-in-time copy of the pending changes a save submits.

    Attributes:
        inserted: Copies of the zones to insert.
        modified: Copies of the zones to update, one per id.
        deleted: Ids to delete.
        revisions: Tracker revision of every id in the batch at capture time.
        generation: Session generation the batch was captured in. An
            explicit reload bumps it and orphans the batch.
    """

    inserted: list[Zone] = field(default_factory=list)
    modified: list[Zone] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    revisions: dict[str, int] = field(default_factory=dict)
    generation: int = 0

    @property
    def is_empty(self) -> bool:
        return not (self.inserted or self.modified or self.deleted)


class ZoneSession:
    """Zones, their pending changes and the interaction mode of one user."""

    def __init__(self, zones: Iterable[Zone] = ()) -> None:
        self.collection = ZoneCollection(zones)
        self.tracker = ChangeTracker(self.collection.ids())
        self.mode = InteractionMode()
        self.last_error: Optional[str] = None
        self.load_state = LoadState.IDLE
        self._save_state = SaveState.CLEAN
        self._in_flight: Optional[SaveBatch] = None
        self._generation = 0

    @property
    def zones(self) -> list[Zone]:
        return self.collection.list_zones()

    # ==================
    # Tracked edits
    # ==================

    def add_zone(self, zone: Zone) -> ZoneStatus:
        """Add a zone drawn by the user."""
        self.collection.insert(zone)
        return self.tracker.record_insert(zone.zone_id)

    def modify_zone(self, zone: Zone) -> Optional[ZoneStatus]:
        """Replace a zone by id. Unknown ids are ignored (returns None)."""
        if not self.collection.update(zone):
            logger.debug(f"Modify ignored, zone {zone.zone_id} not in collection")
            return None
        return self.tracker.record_modify(zone.zone_id)

    def delete_zone(self, zone_id: str) -> bool:
        """Remove a zone by id.

        Returns:
            True if the zone was in the collection.
        """
        removed = self.collection.remove(zone_id)
        self.tracker.record_delete(zone_id)
        return removed is not None

    def get_all_operations(self) -> dict[str, list[str]]:
        """Pending ids: {"inserted": [...], "modified": [...], "deleted": [...]}."""
        return self.tracker.snapshot()

    def toggle_draw(self) -> bool:
        return self.mode.toggle_draw()

    def toggle_modify(self) -> bool:
        return self.mode.toggle_modify()

    # ==================
    # State
    # ==================

    @property
    def saving(self) -> bool:
        return self._in_flight is not None

    @property
    def save_state(self) -> SaveState:
        if self._in_flight is not None:
            return SaveState.SAVING
        if self._save_state is SaveState.SAVE_FAILED:
            return SaveState.SAVE_FAILED
        if self.tracker.has_pending:
            return SaveState.DIRTY
        return self._save_state

    def record_error(self, message: str) -> None:
        """Remember the most recent error, replacing the previous one."""
        self.last_error = message

    # ==================
    # Load
    # ==================

    def begin_load(self) -> None:
        self.load_state = LoadState.LOADING

    def fail_load(self, message: str) -> None:
        self.load_state = LoadState.LOAD_FAILED
        self.record_error(message)

    def apply_snapshot(self, zones: Iterable[Zone], keep_pending: bool = False) -> None:
        """Replace the collection with the server's zone set.

        Args:
            zones: Authoritative zones from the server.
            keep_pending: Re-apply changes that are still pending on top of
                the snapshot. Used after a save, to keep edits made while the
                transaction was in flight. An explicit reload discards them.
        """
        zones = list(zones)
        pending = self.tracker.pending_statuses()
        previous = {zone_id: self.collection.get(zone_id) for zone_id in pending}

        if not keep_pending:
            if pending:
                logger.warning(f"Reload discarded {len(pending)} pending zone edits")
            pending = {}
            self._generation += 1
            self._save_state = SaveState.CLEAN

        self.collection.replace_all(zones)
        self.tracker.reset(self.collection.ids())

        for zone_id, status in pending.items():
            self._remerge(zone_id, status, previous.get(zone_id))

        self.load_state = LoadState.LOADED
        self.last_error = None
        logger.info(f"Loaded {len(zones)} zones")

    def _remerge(self, zone_id: str, status: ZoneStatus, zone: Optional[Zone]) -> None:
        """Re-apply one pending change onto a fresh snapshot."""
        if status is ZoneStatus.DELETED:
            if zone_id in self.collection:
                self.collection.remove(zone_id)
                self.tracker.mark(zone_id, ZoneStatus.DELETED)
            return

        if zone is None:
            return

        if status is ZoneStatus.MODIFIED and zone_id not in self.collection:
            logger.info(f"Zone {zone_id} is gone from the server, it will be inserted again")
            status = ZoneStatus.INSERTED

        self.collection.insert(zone)
        self.tracker.mark(zone_id, status)

    # ==================
    # Save
    # ==================

    def begin_save(self) -> SaveBatch:
        """Capture the pending changes for a save.

        Raises:
            SaveInProgressError: Another save has not finished yet.
            NoChangesError: Nothing is pending.
        """
        if self._in_flight is not None:
            self.record_error("Save already in progress")
            raise SaveInProgressError("Save already in progress")

        changes = self.tracker.pending()
        if changes.is_empty:
            self.record_error("No changes to save")
            raise NoChangesError("No changes to save")

        batch = SaveBatch(generation=self._generation)
        for zone_id in changes.inserted:
            batch.inserted.append(self.collection.get(zone_id).copy())
        for zone_id in changes.modified:
            batch.modified.append(self.collection.get(zone_id).copy())
        batch.deleted = list(changes.deleted)
        for zone_id in changes.inserted + changes.modified + changes.deleted:
            batch.revisions[zone_id] = self.tracker.revision(zone_id)

        self._in_flight = batch
        return batch

    def abort_save(self, batch: SaveBatch, message: str) -> None:
        """Release a failed save. Pending changes stay as they are."""
        if batch is self._in_flight:
            self._in_flight = None
        self._save_state = SaveState.SAVE_FAILED
        self.record_error(message)

    def complete_save(self, batch: SaveBatch, inserted_fids: Optional[list[str]] = None) -> None:
        """Clear the changes a committed transaction carried.

        Ids edited again while the request was in flight keep their newer
        change. When the response reports the feature ids the server
        assigned, every inserted zone is moved onto its id, so later edits
        target the persisted feature even if the reload after the save fails.

        Args:
            batch: The batch returned by begin_save().
            inserted_fids: Server feature ids of the inserts, in insert order.
        """
        if batch is self._in_flight:
            self._in_flight = None
        self._save_state = SaveState.SAVED
        self.last_error = None

        if batch.generation != self._generation:
            logger.warning("Zones were reloaded during the save, skipping reconciliation")
            return

        fid_map: dict[str, str] = {}
        if inserted_fids:
            if len(inserted_fids) == len(batch.inserted):
                fid_map = {z.zone_id: fid for z, fid in zip(batch.inserted, inserted_fids)}
            else:
                logger.warning(
                    f"Server reported {len(inserted_fids)} inserted ids for "
                    f"{len(batch.inserted)} inserts, ignoring them"
                )

        for zone in batch.inserted:
            zone_id = zone.zone_id
            fid = fid_map.get(zone_id)
            if self.tracker.settle(zone_id, batch.revisions[zone_id]):
                if fid is not None:
                    self.collection.rename(zone_id, fid)
                    self.tracker.rekey(zone_id, fid)
                continue
            if fid is not None:
                self._adopt_fid(zone_id, fid)
            elif self.tracker.status(zone_id) is None:
                logger.warning(
                    f"Zone {zone_id} was deleted while being inserted, "
                    "the deletion could not be applied"
                )
            else:
                logger.warning(f"Zone {zone_id} changed while being inserted and may be inserted twice")

        for zone in batch.modified:
            self.tracker.settle(zone.zone_id, batch.revisions[zone.zone_id])
        for zone_id in batch.deleted:
            self.tracker.settle(zone_id, batch.revisions[zone_id])

    def _adopt_fid(self, zone_id: str, fid: str) -> None:
        """Move a changed-in-flight insert onto its server feature id."""
        status = self.tracker.status(zone_id)
        if status is ZoneStatus.INSERTED:
            self.collection.rename(zone_id, fid)
            self.tracker.forget(zone_id)
            self.tracker.mark(fid, ZoneStatus.MODIFIED)
        elif status is None:
            # Deleted locally while the insert was committing
            self.tracker.mark(fid, ZoneStatus.DELETED)
