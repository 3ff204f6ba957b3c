"""
Windows registry access.

- WindowsRegistryStore: KeyValueStore on top of winreg
- RegExporter: raw `reg export` of a key into a .reg file
"""

import logging
import subprocess
from pathlib import Path
from typing import Any, Dict

from ..protocol.errors import KeyValueStoreError
from ..protocol.tweak import Location, ValueType
from .base import KeyValueStore, RawExporter, ReadResult

logger = logging.getLogger("uitune.registry")

_HIVE_NAMES = {
    Location.USER: "HKEY_CURRENT_USER",
    Location.MACHINE: "HKEY_LOCAL_MACHINE",
}

# winreg value kinds (stable Win32 constants)
REG_SZ = 1
REG_EXPAND_SZ = 2
REG_BINARY = 3
REG_DWORD = 4
REG_MULTI_SZ = 7
REG_QWORD = 11

KEY_WOW64_64KEY = 0x0100

KIND_FOR_TYPE: Dict[ValueType, int] = {
    ValueType.INTEGER32: REG_DWORD,
    ValueType.INTEGER64: REG_QWORD,
    ValueType.TEXT: REG_SZ,
    ValueType.EXPANDABLE_TEXT: REG_EXPAND_SZ,
}

TAG_FOR_KIND: Dict[int, str] = {
    REG_DWORD: ValueType.INTEGER32.value,
    REG_QWORD: ValueType.INTEGER64.value,
    REG_SZ: ValueType.TEXT.value,
    REG_EXPAND_SZ: ValueType.EXPANDABLE_TEXT.value,
    REG_BINARY: "Binary",
    REG_MULTI_SZ: "MultiString",
}


def tag_for_kind(kind: int) -> str:
    """Persisted type tag for a winreg value kind."""
    return TAG_FOR_KIND.get(kind, f"Unknown({kind})")


def _winreg():
    try:
        import winreg
    except ImportError as e:
        raise KeyValueStoreError("The Windows registry is only available on Windows") from e
    return winreg


class WindowsRegistryStore(KeyValueStore):
    """KeyValueStore backed by the Windows registry (64-bit view)."""

    def __init__(self, view: int = KEY_WOW64_64KEY):
        self.view = view

    def _hive(self, location: Location):
        return getattr(_winreg(), _HIVE_NAMES[location])

    def get(self, location: Location, path: str, name: str) -> ReadResult:
        winreg = _winreg()
        try:
            with winreg.OpenKey(self._hive(location), path, 0, winreg.KEY_READ | self.view) as key:
                value, kind = winreg.QueryValueEx(key, name)
        except FileNotFoundError:
            return ReadResult.missing()
        except OSError as e:
            raise KeyValueStoreError(f"Cannot read {location.value}\\{path}\\{name}: {e}") from e
        return ReadResult(exists=True, value=value, type_tag=tag_for_kind(kind))

    def set(self, location: Location, path: str, name: str,
            value_type: ValueType, value: Any) -> None:
        winreg = _winreg()
        kind = KIND_FOR_TYPE[value_type]
        try:
            with winreg.CreateKeyEx(self._hive(location), path, 0,
                                    winreg.KEY_SET_VALUE | self.view) as key:
                winreg.SetValueEx(key, name, 0, kind, value)
        except (OSError, ValueError, TypeError) as e:
            raise KeyValueStoreError(f"Cannot write {location.value}\\{path}\\{name}: {e}") from e

    def remove(self, location: Location, path: str, name: str) -> None:
        winreg = _winreg()
        try:
            with winreg.OpenKey(self._hive(location), path, 0,
                                winreg.KEY_SET_VALUE | self.view) as key:
                winreg.DeleteValue(key, name)
        except FileNotFoundError:
            logger.debug("%s\\%s\\%s already absent", location.value, path, name)
        except OSError as e:
            raise KeyValueStoreError(f"Cannot delete {location.value}\\{path}\\{name}: {e}") from e


class RegExporter(RawExporter):
    """Exports a registry key with `reg export` for manual recovery."""

    def __init__(self, timeout: int = 30):
        self.timeout = timeout

    def export(self, location: Location, path: str, destination: Path) -> None:
        cmd = ["reg", "export", f"{location.value}\\{path}", str(destination), "/y"]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise KeyValueStoreError(f"reg export failed: {e}") from e

        if result.returncode != 0:
            message = (result.stderr or result.stdout).strip() or f"exit code {result.returncode}"
            raise KeyValueStoreError(f"reg export of {location.value}\\{path} failed: {message}")
