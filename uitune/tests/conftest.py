"""Pytest configuration and shared fixtures."""
import pytest

from uitune.runner.engine import Orchestrator
from uitune.snapshot.manager import SnapshotStore
from uitune.snapshot.models import RetentionPolicy
from uitune.tests.mocks import (
    INITIAL_REGISTRY,
    SAMPLE_CATALOG,
    MockExporter,
    MockKeyValueStore,
    MockProfileManager,
    ScriptedInteraction,
    TickingClock,
)


@pytest.fixture
def catalog():
    return SAMPLE_CATALOG


@pytest.fixture
def store():
    """Registry in its stock, untuned state."""
    return MockKeyValueStore(INITIAL_REGISTRY)


@pytest.fixture
def profiles():
    return MockProfileManager()


@pytest.fixture
def exporter():
    return MockExporter()


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def backup_root(tmp_path):
    return tmp_path / "backups"


@pytest.fixture
def snapshots(backup_root, store, exporter, clock):
    return SnapshotStore(backup_root, store, exporter=exporter, clock=clock)


@pytest.fixture
def interaction():
    return ScriptedInteraction(confirm=True, select_first=True)


@pytest.fixture
def orchestrator(catalog, store, snapshots, profiles, interaction):
    return Orchestrator(
        catalog=catalog,
        store=store,
        snapshots=snapshots,
        profiles=profiles,
        interaction=interaction,
        retention=RetentionPolicy(max_snapshots=10),
    )
