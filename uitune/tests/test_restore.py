import pytest

from uitune.protocol.tweak import Location, TweakSpec, ValueType
from uitune.snapshot.manager import SnapshotStore
from uitune.snapshot.models import ActiveProfile
from uitune.snapshot.restore import RestoreEngine
from uitune.tests.mocks import (
    ABSENT_AT_START,
    BALANCED_GUID,
    HIGH_PERFORMANCE_GUID,
    INITIAL_REGISTRY,
    MockKeyValueStore,
    MockProfileManager,
)
from uitune.tuning.executor import ApplyEngine
from uitune.tuning.verifier import StatusEngine

BALANCED = ActiveProfile(id=BALANCED_GUID, name="Balanced")


@pytest.fixture
def tuned(snapshots, store, catalog, profiles):
    """A snapshot of the stock registry, then the catalog applied on top."""
    snapshot = snapshots.create(catalog, BALANCED)
    ApplyEngine(store).apply(catalog)
    profiles.activate(HIGH_PERFORMANCE_GUID)
    return snapshot


def test_restore_puts_back_prior_values(tuned, store, profiles):
    report = RestoreEngine(store, profiles).apply(tuned)

    assert report.failed == 0
    assert report.succeeded == len(tuned.entries)
    for (location, path, name), (value, tag) in INITIAL_REGISTRY.items():
        assert store.values[(location, path.lower(), name.lower())] == (value, tag)
    assert report.profile_restored is True
    assert profiles.active_id == BALANCED_GUID
    assert report.type_warnings == []


def test_restore_removes_values_that_did_not_exist(tuned, store, catalog):
    RestoreEngine(store).apply(tuned)

    for tweak in catalog:
        if tweak.identity in ABSENT_AT_START:
            assert not store.has(tweak.location, tweak.path, tweak.name)


def test_absent_value_round_trip(snapshots, store, catalog):
    hover = next(t for t in catalog if t.identity == "mouse-hover-time")
    assert not store.has(hover.location, hover.path, hover.name)

    snapshot = snapshots.create(catalog, BALANCED)
    ApplyEngine(store).apply(catalog)
    assert store.value_of(hover.location, hover.path, hover.name) == "10"

    RestoreEngine(store).apply(snapshot)
    assert store.get(hover.location, hover.path, hover.name).exists is False


def test_restore_isolates_failures(tuned, store):
    store.fail_on_set.add("VisualFXSetting")
    store.fail_on_remove.add("StartupDelayInMSec")

    report = RestoreEngine(store).apply(tuned)

    assert report.failed == 2
    assert report.failed_identities == ["visual-effects-custom", "startup-delay"]
    assert report.succeeded == len(tuned.entries) - 2
    assert store.value_of(Location.USER, r"Control Panel\Desktop", "MenuShowDelay") == "400"
    assert store.value_of(Location.MACHINE, r"SYSTEM\CurrentControlSet\Control\PriorityControl",
                          "Win32PrioritySeparation") == 2


def test_restore_selection_by_position(tuned, store):
    report = RestoreEngine(store).apply(tuned, selection=[4, 0, 0])

    assert report.succeeded == 2
    assert [call[2] for call in store.set_calls[-2:]] == ["MenuShowDelay", "Win32PrioritySeparation"]
    # Unselected entries keep their tuned values
    assert store.value_of(Location.USER, r"Control Panel\Mouse", "MouseHoverTime") == "10"


def test_restore_out_of_range_selection_writes_nothing(tuned, store):
    writes_before = store.write_count

    with pytest.raises(ValueError):
        RestoreEngine(store).apply(tuned, selection=[0, 99])

    assert store.write_count == writes_before


def test_restore_warns_when_profile_was_deleted(tuned, store):
    profiles = MockProfileManager(active_id=HIGH_PERFORMANCE_GUID)
    profiles.remove(BALANCED_GUID)

    report = RestoreEngine(store, profiles).apply(tuned)

    assert report.profile_restored is False
    assert "no longer exists" in report.profile_warning
    assert report.succeeded == len(tuned.entries)
    assert profiles.activate_calls == []


def test_restore_warns_when_profile_activation_fails(tuned, store, profiles):
    profiles.fail_activate = True

    report = RestoreEngine(store, profiles).apply(tuned)

    assert report.profile_restored is False
    assert "Access is denied" in report.profile_warning


def test_restore_unknown_profile_in_snapshot(snapshots, store, catalog, profiles):
    snapshot = snapshots.create(catalog, ActiveProfile.unknown())

    report = RestoreEngine(store, profiles).apply(snapshot)

    assert report.profile_restored is False
    assert report.profile_warning
    assert profiles.activate_calls == []


def test_restore_with_unknown_type_tag_writes_text(snapshots, store, catalog):
    store.values[(Location.USER, r"control panel\desktop", "menushowdelay")] = ("34 00", "Binary")
    snapshot = snapshots.create(catalog, BALANCED)
    ApplyEngine(store).apply(catalog)

    report = RestoreEngine(store).apply(snapshot, selection=[0])

    assert report.failed == 0
    assert store.set_calls[-1][3].value == "String"
    assert store.set_calls[-1][4] == "34 00"
    assert report.type_warnings == [
        "menu-show-delay: original type 'Binary' could not be preserved, restored as String"
    ]


def test_preview_lists_only_differences(tuned, store):
    engine = RestoreEngine(store)

    preview = engine.preview(tuned)
    assert preview.total_changes == len(tuned.entries)
    actions = {c.identity: c.action for c in preview.changes}
    assert actions["mouse-hover-time"] == "delete"
    assert actions["menu-show-delay"] == "set"
    assert store.write_count == len(tuned.entries)  # only the apply writes

    engine.apply(tuned)
    assert engine.preview(tuned).total_changes == 0


def test_single_tweak_apply_then_restore(backup_root, clock):
    store = MockKeyValueStore()
    snapshots = SnapshotStore(backup_root, store, clock=clock)
    catalog = (TweakSpec("A", Location.USER, r"Software\Test", "A", 0, ValueType.INTEGER32),)
    status = StatusEngine(store)

    snapshot = snapshots.create(catalog, BALANCED)
    ApplyEngine(store).apply(catalog)
    assert status.evaluate(catalog).percentage == 100.0

    RestoreEngine(store).apply(snapshot)
    assert not store.has(Location.USER, r"Software\Test", "A")
    assert status.evaluate(catalog).percentage == 0.0
