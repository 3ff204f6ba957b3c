"""
Snapshot/Restore system for uitune.

Every optimize run is preceded by a verified snapshot of the values it is
about to change, so prior state can always be recovered:

- SnapshotStore: create, verify, list, load and prune snapshots on disk
- SnapshotCapture: read current values for a catalog
- RestoreEngine: replay a snapshot (with dry-run preview)

Values that did not exist at backup time are deleted on restore.
"""

from .models import (
    ActiveProfile,
    ValueSnapshot,
    Snapshot,
    SnapshotSummary,
    RetentionPolicy,
    PruneSummary,
    EntryChange,
    RestorePreview,
)
from .capture import SnapshotCapture
from .manager import SnapshotStore
from .restore import RestoreEngine

__all__ = [
    'ActiveProfile',
    'ValueSnapshot',
    'Snapshot',
    'SnapshotSummary',
    'RetentionPolicy',
    'PruneSummary',
    'EntryChange',
    'RestorePreview',
    'SnapshotCapture',
    'SnapshotStore',
    'RestoreEngine',
]
