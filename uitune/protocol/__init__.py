"""
Protocol definitions for uitune.

Dataclasses passed between the catalog, the engines and the front-end:
- TweakSpec: catalog entry (desired registry value)
- ApplyReport/RestoreReport: per-item success/failure counts
- StatusRow/StatusReport: current optimization level
- Error hierarchy
"""

from .tweak import Location, ValueType, TweakSpec
from .result import ApplyReport, RestoreReport, StatusRow, StatusReport
from .errors import (
    UituneError,
    PrivilegeError,
    InvalidStateTransition,
    BackupError,
    BackupRootError,
    SnapshotCollisionError,
    BackupVerificationError,
    SnapshotNotFoundError,
    SnapshotCorruptError,
    NoSnapshotsError,
    KeyValueStoreError,
    ProfileError,
    ProfileNotFoundError,
)

__all__ = [
    # Tweak
    "Location",
    "ValueType",
    "TweakSpec",
    # Result
    "ApplyReport",
    "RestoreReport",
    "StatusRow",
    "StatusReport",
    # Errors
    "UituneError",
    "PrivilegeError",
    "InvalidStateTransition",
    "BackupError",
    "BackupRootError",
    "SnapshotCollisionError",
    "BackupVerificationError",
    "SnapshotNotFoundError",
    "SnapshotCorruptError",
    "NoSnapshotsError",
    "KeyValueStoreError",
    "ProfileError",
    "ProfileNotFoundError",
]
