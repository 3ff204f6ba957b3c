"""
ApplyEngine - Writes the tweak catalog to the registry.

Every entry is attempted. A failing write is logged, counted and recorded
by identity; the loop always continues and always returns a report.

Callers must hold a verified snapshot before calling apply(); the
orchestrator enforces that ordering.
"""

import logging
from typing import Iterable

from ..protocol.result import ApplyReport
from ..protocol.tweak import TweakSpec
from ..system.base import KeyValueStore
from . import codec

logger = logging.getLogger("uitune.apply")


class ApplyEngine:
    """Applies desired values with per-item failure isolation."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def apply(self, catalog: Iterable[TweakSpec]) -> ApplyReport:
        report = ApplyReport()

        for tweak in catalog:
            try:
                value = codec.encode(tweak.value_type, tweak.desired_value)
                self.store.set(tweak.location, tweak.path, tweak.name, tweak.value_type, value)
            except Exception as e:
                logger.error("Failed to apply %s (%s\\%s): %s",
                             tweak.identity, tweak.full_path, tweak.name, e)
                report.record_failure(tweak.identity)
            else:
                logger.debug("Applied %s = %r", tweak.identity, value)
                report.record_success()

        logger.info("Apply finished: %d succeeded, %d failed", report.succeeded, report.failed)
        return report
