"""Tests for ZoneSession edits, snapshots and save reconciliation."""

from __future__ import annotations

import pytest
from loguru import logger

from tests.lib.wfs_fakes import make_point, make_polygon
from zonesync import (
    LoadState,
    NoChangesError,
    SaveInProgressError,
    SaveState,
    Zone,
    ZoneSession,
    ZoneStatus,
)


pytestmark = pytest.mark.unit

EMPTY_OPS = {"inserted": [], "modified": [], "deleted": []}


@pytest.fixture
def session():
    """Session baselined on two persisted zones."""
    return ZoneSession([make_polygon("zones.1", "Parc"), make_polygon("zones.2", "Lac", offset=0.1)])


# ---------------------------------------------------------------------------
# Tracked edits
# ---------------------------------------------------------------------------


class TestTrackedEdits:
    """Edits hit the collection and the tracker together."""

    def test_add_then_delete_scenario(self):
        s = ZoneSession()
        s.add_zone(Zone.from_feature({
            "id": "tmp1",
            "geometry": {"type": "Point", "coordinates": [1, 2]},
            "properties": {},
        }))
        assert s.get_all_operations() == {"inserted": ["tmp1"], "modified": [], "deleted": []}

        assert s.delete_zone("tmp1") is True
        assert len(s.collection) == 0
        assert s.get_all_operations() == EMPTY_OPS

    def test_modify_inserted_zone_stays_insert(self):
        s = ZoneSession()
        s.add_zone(make_polygon("tmp1"))
        s.modify_zone(make_polygon("tmp1", name="Renamed"))
        ops = s.get_all_operations()
        assert ops["inserted"] == ["tmp1"]
        assert ops["modified"] == []
        assert s.collection.get("tmp1").properties["name"] == "Renamed"

    def test_modify_persisted_zone(self, session):
        status = session.modify_zone(make_polygon("zones.1", name="Parc Nord"))
        assert status is ZoneStatus.MODIFIED
        assert session.get_all_operations()["modified"] == ["zones.1"]

    def test_modify_unknown_zone_is_noop(self, session):
        assert session.modify_zone(make_polygon("ghost")) is None
        assert "ghost" not in session.collection
        assert session.get_all_operations() == EMPTY_OPS

    def test_delete_persisted_zone(self, session):
        session.modify_zone(make_polygon("zones.1", name="x"))
        assert session.delete_zone("zones.1") is True
        assert "zones.1" not in session.collection
        assert session.get_all_operations() == {"inserted": [], "modified": [], "deleted": ["zones.1"]}

    def test_delete_unknown_zone(self, session):
        assert session.delete_zone("ghost") is False
        assert session.get_all_operations() == EMPTY_OPS

    def test_operations_are_plain_lists(self, session):
        session.add_zone(make_point("tmp1"))
        ops = session.get_all_operations()
        ops["inserted"].clear()
        assert session.get_all_operations()["inserted"] == ["tmp1"]

    def test_mode_toggles(self, session):
        assert session.toggle_draw() is True
        assert session.toggle_modify() is True
        assert session.mode.draw_enabled is False


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------


class TestSessionState:

    def test_initial_state(self):
        s = ZoneSession()
        assert s.load_state is LoadState.IDLE
        assert s.save_state is SaveState.CLEAN
        assert s.last_error is None

    def test_dirty_after_edit(self, session):
        session.delete_zone("zones.1")
        assert session.save_state is SaveState.DIRTY

    def test_apply_snapshot_replaces_and_resets(self, session):
        session.add_zone(make_point("tmp1"))
        session.last_error = "old"
        session.apply_snapshot([make_polygon("zones.7")])
        assert [z.zone_id for z in session.zones] == ["zones.7"]
        assert session.get_all_operations() == EMPTY_OPS
        assert session.load_state is LoadState.LOADED
        assert session.last_error is None
        assert session.tracker.status("zones.7") is ZoneStatus.UNCHANGED

    def test_fail_load_keeps_zones(self, session):
        session.begin_load()
        assert session.load_state is LoadState.LOADING
        session.fail_load("Failed to load zones")
        assert session.load_state is LoadState.LOAD_FAILED
        assert session.last_error == "Failed to load zones"
        assert len(session.collection) == 2


# ---------------------------------------------------------------------------
# Save batches
# ---------------------------------------------------------------------------


class TestSaveBatch:
    """begin_save captures a detached copy and guards against overlap."""

    def test_no_changes(self, session):
        with pytest.raises(NoChangesError):
            session.begin_save()
        assert session.last_error == "No changes to save"
        assert session.saving is False

    def test_batch_contents(self, session):
        session.add_zone(make_point("tmp1"))
        session.modify_zone(make_polygon("zones.1", name="A"))
        session.delete_zone("zones.2")
        batch = session.begin_save()
        assert [z.zone_id for z in batch.inserted] == ["tmp1"]
        assert [z.zone_id for z in batch.modified] == ["zones.1"]
        assert batch.deleted == ["zones.2"]
        assert set(batch.revisions) == {"tmp1", "zones.1", "zones.2"}
        assert session.save_state is SaveState.SAVING

    def test_batch_is_detached_copy(self, session):
        zone = make_polygon("zones.1", name="A")
        session.modify_zone(zone)
        batch = session.begin_save()
        zone.properties["name"] = "B"
        zone.coordinates[0][0][0] = 99.0
        assert batch.modified[0].properties["name"] == "A"
        assert batch.modified[0].coordinates[0][0][0] == pytest.approx(2.35)

    def test_second_save_rejected(self, session):
        session.delete_zone("zones.1")
        session.begin_save()
        with pytest.raises(SaveInProgressError):
            session.begin_save()
        assert session.last_error == "Save already in progress"

    def test_abort_keeps_pending(self, session):
        session.delete_zone("zones.1")
        before = session.get_all_operations()
        batch = session.begin_save()
        session.abort_save(batch, "Failed to save changes: 500")
        assert session.get_all_operations() == before
        assert session.saving is False
        assert session.save_state is SaveState.SAVE_FAILED
        assert session.last_error == "Failed to save changes: 500"

    def test_complete_clears_batch(self, session):
        session.add_zone(make_point("tmp1"))
        session.delete_zone("zones.2")
        batch = session.begin_save()
        session.complete_save(batch)
        assert session.get_all_operations() == EMPTY_OPS
        assert session.save_state is SaveState.SAVED
        assert session.saving is False


class TestInFlightReconciliation:
    """Edits made while a transaction is in flight survive the save."""

    def test_new_edit_during_save_is_kept(self, session):
        session.delete_zone("zones.1")
        batch = session.begin_save()
        session.add_zone(make_point("tmp2"))
        session.complete_save(batch)
        assert session.get_all_operations() == {"inserted": ["tmp2"], "modified": [], "deleted": []}

    def test_modified_again_during_save_stays_modified(self, session):
        session.modify_zone(make_polygon("zones.1", name="A"))
        batch = session.begin_save()
        session.modify_zone(make_polygon("zones.1", name="B"))
        session.complete_save(batch)
        assert session.get_all_operations()["modified"] == ["zones.1"]

    def test_insert_edited_in_flight_moves_to_fid(self, session):
        session.add_zone(make_polygon("tmp1", name="A"))
        batch = session.begin_save()
        session.modify_zone(make_polygon("tmp1", name="B"))
        session.complete_save(batch, ["zones.10"])
        assert "tmp1" not in session.collection
        assert session.collection.get("zones.10").properties["name"] == "B"
        assert session.get_all_operations() == {"inserted": [], "modified": ["zones.10"], "deleted": []}

    def test_insert_deleted_in_flight_deletes_fid(self, session):
        session.add_zone(make_polygon("tmp1"))
        batch = session.begin_save()
        session.delete_zone("tmp1")
        session.complete_save(batch, ["zones.10"])
        assert session.get_all_operations() == {"inserted": [], "modified": [], "deleted": ["zones.10"]}

    def test_committed_insert_moves_to_fid(self, session):
        session.add_zone(make_point("tmp1"))
        session.add_zone(make_point("tmp2"))
        batch = session.begin_save()
        session.complete_save(batch, ["zones.10", "zones.11"])
        assert session.collection.ids() == ["zones.1", "zones.2", "zones.10", "zones.11"]
        assert session.collection.get("zones.10").zone_id == "zones.10"
        assert session.tracker.status("zones.10") is ZoneStatus.UNCHANGED
        assert session.tracker.status("tmp1") is None
        assert session.get_all_operations() == EMPTY_OPS

    def test_insert_deleted_in_flight_without_fid_warns(self, session):
        messages = []
        sink = logger.add(messages.append, level="WARNING")
        try:
            session.add_zone(make_polygon("tmp1"))
            batch = session.begin_save()
            session.delete_zone("tmp1")
            session.complete_save(batch, [])
        finally:
            logger.remove(sink)
        assert any("deletion could not be applied" in m for m in messages)
        assert not any("inserted twice" in m for m in messages)

    def test_insert_edited_in_flight_without_fid_stays_pending(self, session):
        session.add_zone(make_polygon("tmp1"))
        batch = session.begin_save()
        session.modify_zone(make_polygon("tmp1", name="B"))
        session.complete_save(batch, [])
        assert session.get_all_operations()["inserted"] == ["tmp1"]

    def test_mismatched_fid_count_ignored(self, session):
        session.add_zone(make_polygon("tmp1"))
        session.add_zone(make_polygon("tmp2"))
        batch = session.begin_save()
        session.modify_zone(make_polygon("tmp1", name="B"))
        session.complete_save(batch, ["zones.10"])
        assert session.get_all_operations()["inserted"] == ["tmp1"]

    def test_reload_during_save_orphans_batch(self, session):
        session.add_zone(make_polygon("tmp1"))
        batch = session.begin_save()
        session.apply_snapshot([make_polygon("zones.1")])
        session.complete_save(batch, ["zones.10"])
        assert session.get_all_operations() == EMPTY_OPS

    def test_snapshot_keep_pending_remerges(self, session):
        session.delete_zone("zones.1")
        batch = session.begin_save()
        session.add_zone(make_point("tmp2"))
        session.modify_zone(make_polygon("zones.2", name="Lac Sud", offset=0.1))
        session.complete_save(batch)

        # Server state after the commit: zones.1 gone, zones.2 unchanged
        session.apply_snapshot([make_polygon("zones.2", "Lac", offset=0.1)], keep_pending=True)

        assert session.collection.ids() == ["zones.2", "tmp2"]
        assert session.collection.get("zones.2").properties["name"] == "Lac Sud"
        assert session.get_all_operations() == {
            "inserted": ["tmp2"], "modified": ["zones.2"], "deleted": [],
        }

    def test_remerge_modified_missing_on_server_reinserts(self, session):
        session.modify_zone(make_polygon("zones.1", name="A"))
        session.apply_snapshot([], keep_pending=True)
        assert session.get_all_operations()["inserted"] == ["zones.1"]
