"""
uitune - Windows UI responsiveness tuning with verified backups

Applies a catalog of registry tweaks and a performance power plan, but
only after a verified snapshot of every touched value has been written.
Any snapshot can later be restored, including deleting values that did
not exist before.

Usage:
    # As a module
    python -m uitune --optimize

    # Programmatically
    from uitune import Orchestrator, SnapshotStore, DEFAULT_CATALOG

    snapshots = SnapshotStore(backup_root, store)
    orchestrator = Orchestrator(DEFAULT_CATALOG, store, snapshots)
    result = orchestrator.optimize()
"""

__version__ = "1.0.0"

# Main exports
from .runner.engine import Orchestrator, OptimizeResult, RestoreOutcome
from .runner.state import StateMachine, State

# Protocol exports
from .protocol.tweak import TweakSpec, Location, ValueType
from .protocol.result import ApplyReport, RestoreReport, StatusReport
from .protocol.errors import UituneError

# Snapshot exports
from .snapshot.manager import SnapshotStore
from .snapshot.models import Snapshot, RetentionPolicy

from .catalog import DEFAULT_CATALOG, load_catalog

__all__ = [
    # Version
    "__version__",
    # Engine
    "Orchestrator",
    "OptimizeResult",
    "RestoreOutcome",
    "StateMachine",
    "State",
    # Protocol
    "TweakSpec",
    "Location",
    "ValueType",
    "ApplyReport",
    "RestoreReport",
    "StatusReport",
    "UituneError",
    # Snapshot
    "SnapshotStore",
    "Snapshot",
    "RetentionPolicy",
    # Catalog
    "DEFAULT_CATALOG",
    "load_catalog",
]
