"""
Data models for the snapshot/restore system.

backup.json layout (format-stable):

    {
      "Version": "1.0",
      "Timestamp": "2026-10-19T14:03:22",
      "ComputerName": "DESKTOP-01",
      "UserName": "alice",
      "PowerPlan": {"Guid": "...", "Name": "Balanced"},
      "RegistryValues": [
        {"Tweak": "...", "Hive": "HKCU", "Path": "...", "Name": "...",
         "Existed": true, "Value": "400", "Type": "String"}
      ],
      "TweakCount": 1
    }
"""

import json
import logging
import platform
import getpass
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..protocol.tweak import Location

logger = logging.getLogger("uitune.snapshot")

FORMAT_VERSION = "1.0"
METADATA_FILE = "backup.json"
SNAPSHOT_PREFIX = "backup_"
SNAPSHOT_ID_FORMAT = SNAPSHOT_PREFIX + "%Y%m%d_%H%M%S"


@dataclass
class ActiveProfile:
    """Power profile active when a snapshot was taken."""
    id: Optional[str]
    name: str = "Unknown"

    @classmethod
    def unknown(cls) -> "ActiveProfile":
        return cls(id=None, name="Unknown")

    def to_dict(self) -> Dict[str, Any]:
        return {"Guid": self.id, "Name": self.name}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ActiveProfile":
        if not isinstance(data, dict):
            return cls.unknown()
        return cls(id=data.get("Guid") or None, name=data.get("Name") or "Unknown")


@dataclass
class ValueSnapshot:
    """Observed state of one catalog entry at backup time."""
    identity: str
    location: Location
    path: str
    name: str
    existed: bool
    value: Any = None
    observed_type_tag: Optional[str] = None

    def __post_init__(self):
        # A value that did not exist has nothing to restore but its absence
        if not self.existed:
            self.value = None
            self.observed_type_tag = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Tweak": self.identity,
            "Hive": self.location.value,
            "Path": self.path,
            "Name": self.name,
            "Existed": self.existed,
            "Value": self.value,
            "Type": self.observed_type_tag,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ValueSnapshot":
        if not isinstance(data, dict):
            raise TypeError(f"registry value entry is not an object: {data!r}")
        return cls(
            identity=str(data.get("Tweak") or data.get("Name") or ""),
            location=Location.parse(data["Hive"]),
            path=str(data["Path"]),
            name=str(data["Name"]),
            existed=bool(data.get("Existed", False)),
            value=data.get("Value"),
            observed_type_tag=data.get("Type"),
        )


@dataclass
class Snapshot:
    """Durable capture of prior state for all catalog entries."""
    format_version: str
    created_at: str                     # ISO timestamp
    host_identity: str
    user_identity: str
    active_profile: ActiveProfile
    entries: List[ValueSnapshot] = field(default_factory=list)
    entry_count: int = 0

    # Populated by the store, not persisted
    snapshot_id: Optional[str] = field(default=None, compare=False)
    directory: Optional[Path] = field(default=None, compare=False)

    @classmethod
    def create(
        cls,
        entries: List[ValueSnapshot],
        active_profile: ActiveProfile,
        created_at: Optional[datetime] = None,
    ) -> "Snapshot":
        """Create a new snapshot for the current host and user."""
        created_at = created_at or datetime.now()
        return cls(
            format_version=FORMAT_VERSION,
            created_at=created_at.isoformat(timespec="seconds"),
            host_identity=platform.node() or "unknown",
            user_identity=_current_user(),
            active_profile=active_profile,
            entries=list(entries),
            entry_count=len(entries),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the backup.json document."""
        return {
            "Version": self.format_version,
            "Timestamp": self.created_at,
            "ComputerName": self.host_identity,
            "UserName": self.user_identity,
            "PowerPlan": self.active_profile.to_dict(),
            "RegistryValues": [entry.to_dict() for entry in self.entries],
            "TweakCount": len(self.entries),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Snapshot":
        """
        Create from a backup.json document.

        Raises:
            ValueError/KeyError/TypeError: the document is structurally invalid
        """
        if not isinstance(data, dict):
            raise TypeError("snapshot metadata is not an object")
        timestamp = data.get("Timestamp")
        if not timestamp:
            raise ValueError("snapshot metadata has no Timestamp")
        values = data.get("RegistryValues")
        if not isinstance(values, list):
            raise ValueError("snapshot metadata has no RegistryValues list")

        entries = [ValueSnapshot.from_dict(item) for item in values]
        count = data.get("TweakCount")
        if count is not None and count != len(entries):
            logger.warning(
                "TweakCount %s does not match %d stored entries, using entries",
                count, len(entries),
            )

        return cls(
            format_version=str(data.get("Version") or FORMAT_VERSION),
            created_at=str(timestamp),
            host_identity=str(data.get("ComputerName") or ""),
            user_identity=str(data.get("UserName") or ""),
            active_profile=ActiveProfile.from_dict(data.get("PowerPlan")),
            entries=entries,
            entry_count=len(entries),
        )

    def save(self, path: Path) -> None:
        """Save snapshot metadata to JSON file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
            f.flush()

    @classmethod
    def load(cls, path: Path) -> "Snapshot":
        """Load snapshot metadata from JSON file."""
        with open(path, encoding="utf-8") as f:
            return cls.from_dict(json.load(f))


@dataclass
class SnapshotSummary:
    """Summary info for listing snapshots."""
    snapshot_id: str
    path: Path
    created_at: datetime
    is_valid: bool
    entry_count: int = 0
    host_identity: str = ""
    profile_name: str = ""
    error: Optional[str] = None


@dataclass
class RetentionPolicy:
    """How many snapshots to keep; the oldest are pruned first."""
    max_snapshots: int = 10

    MIN = 1
    MAX = 100

    def __post_init__(self):
        if isinstance(self.max_snapshots, bool) or not isinstance(self.max_snapshots, int):
            raise ValueError(f"max_snapshots must be an integer, got {self.max_snapshots!r}")
        if not self.MIN <= self.max_snapshots <= self.MAX:
            raise ValueError(
                f"max_snapshots must be between {self.MIN} and {self.MAX}, got {self.max_snapshots}"
            )


@dataclass
class PruneSummary:
    """Result of a retention pass."""
    removed: List[str] = field(default_factory=list)
    kept: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


@dataclass
class EntryChange:
    """A single entry whose current state differs from the snapshot."""
    identity: str
    current_value: Any
    snapshot_value: Any
    current_exists: bool
    snapshot_existed: bool

    @property
    def action(self) -> str:
        return "set" if self.snapshot_existed else "delete"


@dataclass
class RestorePreview:
    """Preview of what restore would change."""
    changes: List[EntryChange] = field(default_factory=list)
    total_changes: int = 0

    def __post_init__(self):
        self.total_changes = len(self.changes)


def _current_user() -> str:
    try:
        return getpass.getuser()
    except Exception:
        return "unknown"
