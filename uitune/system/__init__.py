"""
System collaborators - registry, power profiles and privileges.
"""

from .base import (
    KeyValueStore,
    ProfileManager,
    RawExporter,
    UserInteraction,
    ReadResult,
    Profile,
)
from .registry import WindowsRegistryStore, RegExporter
from .power import PowerCfgProfileManager
from .privileges import is_admin, is_windows

__all__ = [
    "KeyValueStore",
    "ProfileManager",
    "RawExporter",
    "UserInteraction",
    "ReadResult",
    "Profile",
    "WindowsRegistryStore",
    "RegExporter",
    "PowerCfgProfileManager",
    "is_admin",
    "is_windows",
]
