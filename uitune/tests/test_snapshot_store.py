import json
from datetime import datetime, timedelta

import pytest

from uitune.protocol.errors import (
    BackupRootError,
    BackupVerificationError,
    SnapshotCollisionError,
    SnapshotCorruptError,
    SnapshotNotFoundError,
)
from uitune.protocol.tweak import Location
from uitune.snapshot.manager import SnapshotStore, export_file_name, sanitize_path
from uitune.snapshot.models import ActiveProfile, RetentionPolicy, Snapshot, ValueSnapshot
from uitune.tests.mocks import (
    BALANCED_GUID,
    MockExporter,
    TickingClock,
)

BALANCED = ActiveProfile(id=BALANCED_GUID, name="Balanced")


def _plant_snapshot(root, snapshot_id, created, entries=None):
    directory = root / snapshot_id
    directory.mkdir(parents=True)
    payload = {
        "Version": "1.0",
        "Timestamp": created.isoformat(),
        "ComputerName": "DESKTOP-TEST",
        "UserName": "tester",
        "PowerPlan": {"Guid": BALANCED_GUID, "Name": "Balanced"},
        "RegistryValues": entries or [],
        "TweakCount": len(entries or []),
    }
    (directory / "backup.json").write_text(json.dumps(payload), encoding="utf-8")
    return directory


def test_create_writes_metadata_and_exports(snapshots, catalog, backup_root, exporter):
    snapshot = snapshots.create(catalog, BALANCED)

    assert snapshot.snapshot_id == "backup_20240115_093000"
    assert snapshot.directory == backup_root / "backup_20240115_093000"
    assert snapshot.entry_count == len(catalog)

    data = json.loads((snapshot.directory / "backup.json").read_text(encoding="utf-8"))
    assert data["Version"] == "1.0"
    assert data["Timestamp"] == "2024-01-15T09:30:00"
    assert data["PowerPlan"] == {"Guid": BALANCED_GUID, "Name": "Balanced"}
    assert data["TweakCount"] == len(catalog)
    assert set(data) == {
        "Version", "Timestamp", "ComputerName", "UserName",
        "PowerPlan", "RegistryValues", "TweakCount",
    }

    first = data["RegistryValues"][0]
    assert first == {
        "Tweak": "menu-show-delay",
        "Hive": "HKCU",
        "Path": r"Control Panel\Desktop",
        "Name": "MenuShowDelay",
        "Existed": True,
        "Value": "400",
        "Type": "String",
    }

    # One export per distinct key; MenuShowDelay and TranscodedImageCache share Control Panel\Desktop
    distinct = {(t.location, t.path) for t in catalog}
    assert len(exporter.exports) == len(distinct)
    assert (snapshot.directory / "HKCU_Control_Panel_Desktop.reg").exists()
    assert (snapshot.directory / "HKLM_SYSTEM_CurrentControlSet_Control_PriorityControl.reg").exists()


def test_create_records_absent_values(snapshots, catalog):
    snapshot = snapshots.create(catalog, BALANCED)
    by_id = {e.identity: e for e in snapshot.entries}

    hover = by_id["mouse-hover-time"]
    assert hover.existed is False
    assert hover.value is None
    assert hover.observed_type_tag is None
    assert by_id["foreground-priority"].value == 2
    assert by_id["foreground-priority"].observed_type_tag == "DWord"


def test_create_leaves_no_staging_directory(snapshots, catalog, backup_root):
    snapshots.create(catalog, BALANCED)
    assert [p.name for p in backup_root.iterdir()] == ["backup_20240115_093000"]


def test_unreadable_value_is_recorded_as_absent(snapshots, catalog, store):
    store.fail_on_get.add("VisualFXSetting")

    snapshot = snapshots.create(catalog, BALANCED)

    entry = next(e for e in snapshot.entries if e.identity == "visual-effects-custom")
    assert entry.existed is False
    assert snapshots.read_failures == ["visual-effects-custom"]


def test_export_failure_does_not_fail_backup(backup_root, store, catalog, clock):
    exporter = MockExporter(fail_paths={r"Control Panel\Mouse"})
    snapshots = SnapshotStore(backup_root, store, exporter=exporter, clock=clock)

    snapshot = snapshots.create(catalog, BALANCED)

    assert snapshots.verify(snapshot.snapshot_id)
    assert snapshots.export_failures == [r"HKCU\Control Panel\Mouse"]


def test_create_without_exporter(backup_root, store, catalog, clock):
    snapshots = SnapshotStore(backup_root, store, clock=clock)
    snapshot = snapshots.create(catalog, BALANCED)
    assert list(snapshot.directory.glob("*.reg")) == []


def test_same_second_collision_is_rejected(backup_root, store, catalog):
    fixed = datetime(2024, 1, 15, 9, 30, 0)
    snapshots = SnapshotStore(backup_root, store, clock=lambda: fixed)
    snapshots.create(catalog, BALANCED)

    with pytest.raises(SnapshotCollisionError):
        snapshots.create(catalog, BALANCED)
    assert len(snapshots.list()) == 1


def test_unwritable_root_raises(tmp_path, store, catalog):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("occupied", encoding="utf-8")
    snapshots = SnapshotStore(blocker, store)

    with pytest.raises(BackupRootError):
        snapshots.create(catalog, BALANCED)


class CorruptingStore(SnapshotStore):
    """Writes metadata that cannot be parsed back."""

    def _write_metadata(self, snapshot, path):
        path.write_text("{\"Version\": \"1.0\", ", encoding="utf-8")


def test_failed_verification_removes_snapshot(backup_root, store, catalog, clock):
    snapshots = CorruptingStore(backup_root, store, clock=clock)

    with pytest.raises(BackupVerificationError):
        snapshots.create(catalog, BALANCED)

    assert list(backup_root.iterdir()) == []


def test_verify(snapshots, catalog, backup_root):
    snapshot = snapshots.create(catalog, BALANCED)
    assert snapshots.verify(snapshot.snapshot_id)

    (snapshot.directory / "backup.json").write_text("[]", encoding="utf-8")
    assert not snapshots.verify(snapshot.snapshot_id)

    (snapshot.directory / "backup.json").unlink()
    assert not snapshots.verify(snapshot.snapshot_id)
    assert not snapshots.verify("backup_19990101_000000")


def test_list_newest_first_with_corrupt_entry(snapshots, catalog, backup_root):
    snapshots.create(catalog, BALANCED)
    snapshots.create(catalog, BALANCED)

    corrupt = backup_root / "backup_20200101_000000"
    corrupt.mkdir()
    (corrupt / "backup.json").write_text("not json", encoding="utf-8")
    (backup_root / "notes").mkdir()
    (backup_root / ".backup_20240115_100000.partial").mkdir()
    (backup_root / "backup_20240101_000000.txt").write_text("x", encoding="utf-8")

    summaries = snapshots.list()

    assert [s.snapshot_id for s in summaries] == [
        "backup_20240115_093001",
        "backup_20240115_093000",
        "backup_20200101_000000",
    ]
    assert all(s.is_valid for s in summaries[:2])
    assert summaries[0].entry_count == len(catalog)
    assert summaries[0].profile_name == "Balanced"
    assert summaries[0].created_at == datetime(2024, 1, 15, 9, 30, 1)
    assert summaries[2].is_valid is False
    assert summaries[2].error


def test_list_missing_root_is_empty(tmp_path, store):
    assert SnapshotStore(tmp_path / "nowhere", store).list() == []


def test_load_round_trips(snapshots, catalog):
    created = snapshots.create(catalog, BALANCED)

    loaded = snapshots.load(created.snapshot_id)

    assert loaded == created
    assert loaded.snapshot_id == created.snapshot_id
    assert loaded.active_profile == BALANCED


def test_load_errors(snapshots, backup_root):
    with pytest.raises(SnapshotNotFoundError):
        snapshots.load("backup_20240101_000000")
    with pytest.raises(SnapshotNotFoundError):
        snapshots.load("../../Windows")

    corrupt = backup_root / "backup_20200101_000000"
    corrupt.mkdir(parents=True)
    (corrupt / "backup.json").write_text(json.dumps({"Version": "1.0"}), encoding="utf-8")
    with pytest.raises(SnapshotCorruptError):
        snapshots.load("backup_20200101_000000")


def test_load_tolerates_tweak_count_mismatch(backup_root, store):
    entries = [{
        "Tweak": "menu-show-delay", "Hive": "HKCU", "Path": r"Control Panel\Desktop",
        "Name": "MenuShowDelay", "Existed": True, "Value": "400", "Type": "String",
    }]
    directory = _plant_snapshot(backup_root, "backup_20240101_120000", datetime(2024, 1, 1, 12), entries)
    data = json.loads((directory / "backup.json").read_text(encoding="utf-8"))
    data["TweakCount"] = 7
    (directory / "backup.json").write_text(json.dumps(data), encoding="utf-8")

    snapshot = SnapshotStore(backup_root, store).load("backup_20240101_120000")
    assert snapshot.entry_count == 1


def test_prune_keeps_newest(backup_root, store, catalog):
    clock = TickingClock(step=timedelta(minutes=1))
    snapshots = SnapshotStore(backup_root, store, clock=clock)
    created = [snapshots.create(catalog, BALANCED).snapshot_id for _ in range(5)]

    summary = snapshots.prune(RetentionPolicy(max_snapshots=3))

    assert summary.removed == [created[1], created[0]]
    assert summary.kept == list(reversed(created[2:]))
    assert summary.failed == []
    assert [s.snapshot_id for s in snapshots.list()] == list(reversed(created[2:]))


def test_retention_invariant_holds_after_every_backup(backup_root, store, catalog):
    clock = TickingClock(step=timedelta(hours=1))
    snapshots = SnapshotStore(backup_root, store, clock=clock)
    policy = RetentionPolicy(max_snapshots=4)

    for _ in range(9):
        newest = snapshots.create(catalog, BALANCED).snapshot_id
        snapshots.prune(policy)
        remaining = snapshots.list()
        assert len(remaining) <= policy.max_snapshots
        assert remaining[0].snapshot_id == newest


def test_prune_counts_corrupt_snapshots(backup_root, store, catalog, clock):
    snapshots = SnapshotStore(backup_root, store, clock=clock)
    corrupt = backup_root / "backup_20200101_000000"
    corrupt.mkdir(parents=True)
    snapshots.create(catalog, BALANCED)

    summary = snapshots.prune(RetentionPolicy(max_snapshots=1))

    assert summary.removed == ["backup_20200101_000000"]
    assert not corrupt.exists()


@pytest.mark.parametrize("max_snapshots", [0, 101, -5, "10", 2.5, True])
def test_retention_policy_range(max_snapshots):
    with pytest.raises(ValueError):
        RetentionPolicy(max_snapshots=max_snapshots)


def test_export_file_names():
    assert sanitize_path(r"Control Panel\Desktop\WindowMetrics") == "Control_Panel_Desktop_WindowMetrics"
    assert sanitize_path(r"\Software\Foo (x86)\\") == "Software_Foo_x86"
    assert export_file_name(Location.MACHINE, r"SYSTEM\CurrentControlSet") == "HKLM_SYSTEM_CurrentControlSet.reg"


def test_snapshot_from_dict_rejects_missing_fields():
    with pytest.raises(ValueError):
        Snapshot.from_dict({"Version": "1.0", "RegistryValues": []})
    with pytest.raises(ValueError):
        Snapshot.from_dict({"Timestamp": "2024-01-15T09:30:00"})
    with pytest.raises(TypeError):
        Snapshot.from_dict([])


def test_value_entry_from_dict_rejects_non_object():
    with pytest.raises(TypeError):
        ValueSnapshot.from_dict("oops")


def test_non_object_registry_entry_marks_snapshot_corrupt(snapshots, catalog, backup_root):
    good = snapshots.create(catalog, BALANCED)
    broken = _plant_snapshot(backup_root, "backup_20200101_000000", datetime(2020, 1, 1), ["oops"])

    summaries = {s.snapshot_id: s for s in snapshots.list()}

    assert summaries[good.snapshot_id].is_valid
    assert summaries[broken.name].is_valid is False
    assert "not an object" in summaries[broken.name].error
    with pytest.raises(SnapshotCorruptError):
        snapshots.load(broken.name)


def test_prune_skips_snapshots_it_cannot_delete(backup_root, store, catalog, monkeypatch, caplog):
    clock = TickingClock(step=timedelta(minutes=1))
    snapshots = SnapshotStore(backup_root, store, clock=clock)
    created = [snapshots.create(catalog, BALANCED).snapshot_id for _ in range(4)]

    def locked(path, *args, **kwargs):
        raise PermissionError(13, "Access is denied", str(path))

    monkeypatch.setattr("uitune.snapshot.manager.shutil.rmtree", locked)
    summary = snapshots.prune(RetentionPolicy(max_snapshots=2))

    assert summary.removed == []
    assert summary.failed == [created[1], created[0]]
    assert summary.kept == [created[3], created[2]]
    assert len(snapshots.list()) == 4
    assert "Could not remove old snapshot" in caplog.text
