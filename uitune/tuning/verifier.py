"""
StatusEngine - Compares current registry state against catalog targets.
"""

import logging
from typing import Iterable

from ..protocol.result import StatusReport, StatusRow
from ..protocol.tweak import TweakSpec
from ..system.base import KeyValueStore
from . import codec

logger = logging.getLogger("uitune.status")


class StatusEngine:
    """
    Reports which tweaks are currently in their desired state.

    A value that is missing or unreadable is never optimized.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    def evaluate(self, catalog: Iterable[TweakSpec]) -> StatusReport:
        report = StatusReport()
        for tweak in catalog:
            report.rows.append(self._evaluate_one(tweak))
        return report

    def _evaluate_one(self, tweak: TweakSpec) -> StatusRow:
        try:
            desired = codec.encode(tweak.value_type, tweak.desired_value)
        except ValueError as e:
            logger.warning("Desired value for %s is invalid: %s", tweak.identity, e)
            desired = tweak.desired_value

        try:
            current = self.store.get(tweak.location, tweak.path, tweak.name)
        except Exception as e:
            logger.debug("Status read of %s failed: %s", tweak.identity, e)
            return StatusRow(tweak.identity, None, desired, is_optimized=False, exists=False)

        if not current.exists:
            return StatusRow(tweak.identity, None, desired, is_optimized=False, exists=False)

        return StatusRow(
            identity=tweak.identity,
            current_value=current.value,
            desired_value=desired,
            is_optimized=codec.equal(tweak.value_type, current.value, desired),
        )
