"""
Snapshot capture - collects the current registry state for a catalog.
"""

import logging
from typing import Any, Iterable, List

from ..protocol.tweak import TweakSpec
from ..system.base import KeyValueStore, ReadResult
from .models import ValueSnapshot

logger = logging.getLogger("uitune.snapshot")


class SnapshotCapture:
    """Reads the observed state of every catalog entry."""

    def __init__(self, store: KeyValueStore):
        self.store = store
        self.read_failures: List[str] = []

    def capture(self, catalog: Iterable[TweakSpec]) -> List[ValueSnapshot]:
        """
        Capture one ValueSnapshot per catalog entry, in catalog order.

        An entry that cannot be read is recorded as "did not exist" with a
        warning instead of failing the whole capture.
        """
        self.read_failures = []
        return [self._capture_one(tweak) for tweak in catalog]

    def _capture_one(self, tweak: TweakSpec) -> ValueSnapshot:
        try:
            result = self.store.get(tweak.location, tweak.path, tweak.name)
        except Exception as e:
            logger.warning(
                "Could not read %s (%s\\%s): %s; recording as not present",
                tweak.identity, tweak.full_path, tweak.name, e,
            )
            self.read_failures.append(tweak.identity)
            result = ReadResult.missing()

        return ValueSnapshot(
            identity=tweak.identity,
            location=tweak.location,
            path=tweak.path,
            name=tweak.name,
            existed=result.exists,
            value=_jsonable(result.value),
            observed_type_tag=result.type_tag,
        )


def _jsonable(value: Any) -> Any:
    """Binary registry data is stored as hex so backup.json stays text."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex()
    return value
