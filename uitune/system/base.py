"""
Collaborator interfaces consumed by the engines.

- KeyValueStore: read/write/delete one registry value
- ProfileManager: enumerate/activate power profiles
- RawExporter: out-of-band export of a registry key
- UserInteraction: confirmations and selections

Concrete Windows implementations live in registry.py and power.py; the
tests use in-memory fakes.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Sequence, TYPE_CHECKING

from ..protocol.tweak import Location, ValueType

if TYPE_CHECKING:
    from ..snapshot.models import ActiveProfile, SnapshotSummary


@dataclass(frozen=True)
class ReadResult:
    """Observed state of one registry value."""
    exists: bool
    value: Any = None
    type_tag: Optional[str] = None

    @classmethod
    def missing(cls) -> "ReadResult":
        return cls(exists=False)


@dataclass(frozen=True)
class Profile:
    """A power profile (power plan) known to the system."""
    id: str
    name: str
    is_active: bool = False


class KeyValueStore(ABC):
    """Hierarchical configuration store being tuned."""

    @abstractmethod
    def get(self, location: Location, path: str, name: str) -> ReadResult:
        """
        Read a value.

        Returns ReadResult.missing() when the key or value does not exist.

        Raises:
            KeyValueStoreError: the value exists but cannot be read
        """

    @abstractmethod
    def set(self, location: Location, path: str, name: str,
            value_type: ValueType, value: Any) -> None:
        """Write a value, creating the key if needed. Raises KeyValueStoreError."""

    @abstractmethod
    def remove(self, location: Location, path: str, name: str) -> None:
        """Delete a value. Removing an absent value is not an error."""


class ProfileManager(ABC):
    """Named system operating-mode profiles (power plans)."""

    @abstractmethod
    def list_profiles(self) -> List[Profile]:
        ...

    @abstractmethod
    def get_active(self) -> "ActiveProfile":
        ...

    @abstractmethod
    def activate(self, profile_id: str) -> None:
        """Raises ProfileNotFoundError for an unknown id, ProfileError otherwise."""


class RawExporter(ABC):
    """Best-effort raw export of one registry key for out-of-band recovery."""

    @abstractmethod
    def export(self, location: Location, path: str, destination: Path) -> None:
        ...


class UserInteraction(ABC):
    """Operator-facing confirmations and selections."""

    @abstractmethod
    def confirm(self, message: str) -> bool:
        """Return True only on an explicit affirmative answer."""

    @abstractmethod
    def select_snapshot(self, summaries: Sequence["SnapshotSummary"]) -> Optional[str]:
        """Return the chosen snapshot id, or None to cancel."""
