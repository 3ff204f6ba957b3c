"""
Error hierarchy for uitune.

Fatal conditions propagate as exceptions to the orchestrator. Per-item
failures are caught by the engines and reported in their result objects.
"""


class UituneError(RuntimeError):
    """Base exception for uitune failures."""


class PrivilegeError(UituneError):
    """The process lacks the privileges needed to write machine settings."""


class InvalidStateTransition(UituneError):
    """An orchestrator state machine was asked for an illegal transition."""


# =============================================================================
# Backup / snapshot errors
# =============================================================================

class BackupError(UituneError):
    """Base exception for snapshot related failures."""


class BackupRootError(BackupError):
    """The backup root directory cannot be created or written."""


class SnapshotCollisionError(BackupError):
    """A snapshot with the same identifier already exists."""


class BackupVerificationError(BackupError):
    """A freshly written snapshot failed structural verification."""


class SnapshotNotFoundError(BackupError):
    """The requested snapshot does not exist."""


class SnapshotCorruptError(BackupError):
    """The requested snapshot exists but its metadata is unreadable."""


class NoSnapshotsError(BackupError):
    """There are no snapshots to restore from."""


# =============================================================================
# Collaborator errors
# =============================================================================

class KeyValueStoreError(UituneError):
    """A single registry read/write/delete failed."""


class ProfileError(UituneError):
    """A power profile operation failed."""


class ProfileNotFoundError(ProfileError):
    """The requested power profile does not exist on this system."""


__all__ = [
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
