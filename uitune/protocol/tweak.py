"""
Tweak Protocol - Catalog → Engines.

A TweakSpec is one desired registry value. The catalog is an ordered,
immutable tuple of them, injected into the snapshot store and the
apply/status engines.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Tuple


class Location(str, Enum):
    """Registry hive a tweak lives under."""
    USER = "HKCU"       # UserScope
    MACHINE = "HKLM"    # MachineScope

    @classmethod
    def parse(cls, value: str) -> "Location":
        """Accept hive short names, long names and enum names."""
        text = str(value).strip().upper()
        aliases = {
            "HKCU": cls.USER,
            "HKEY_CURRENT_USER": cls.USER,
            "USER": cls.USER,
            "USERSCOPE": cls.USER,
            "HKLM": cls.MACHINE,
            "HKEY_LOCAL_MACHINE": cls.MACHINE,
            "MACHINE": cls.MACHINE,
            "MACHINESCOPE": cls.MACHINE,
        }
        if text not in aliases:
            raise ValueError(f"Unknown registry location: {value!r}")
        return aliases[text]


class ValueType(str, Enum):
    """
    Closed set of value kinds a tweak can carry.

    The enum value is the type tag persisted in backup.json.
    """
    INTEGER32 = "DWord"
    INTEGER64 = "QWord"
    TEXT = "String"
    EXPANDABLE_TEXT = "ExpandString"

    @property
    def is_integer(self) -> bool:
        return self in (ValueType.INTEGER32, ValueType.INTEGER64)


@dataclass(frozen=True)
class TweakSpec:
    """A single desired registry value."""
    identity: str
    location: Location
    path: str
    name: str
    desired_value: Any
    value_type: ValueType
    description: str = ""

    @property
    def key(self) -> Tuple[Location, str, str]:
        """Unique identity of the underlying registry value."""
        return (self.location, self.path.lower(), self.name.lower())

    @property
    def full_path(self) -> str:
        return f"{self.location.value}\\{self.path}"
