"""
Orchestrator - Sequences backup, apply and restore.

This is the only layer allowed to abort a multi-step operation. The core
guarantee: no registry value is written by optimize() unless a verified
snapshot was created first.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from .state import StateMachine, State, StateEvent
from ..protocol.errors import BackupError, NoSnapshotsError
from ..protocol.result import ApplyReport, RestoreReport, StatusReport
from ..protocol.tweak import TweakSpec
from ..snapshot.manager import SnapshotStore
from ..snapshot.models import (
    ActiveProfile,
    PruneSummary,
    RestorePreview,
    RetentionPolicy,
    Snapshot,
    SnapshotSummary,
)
from ..snapshot.restore import RestoreEngine
from ..system.base import KeyValueStore, ProfileManager, Profile, UserInteraction
from ..tuning.executor import ApplyEngine
from ..tuning.verifier import StatusEngine

logger = logging.getLogger("uitune.engine")

# Preferred performance profiles, most aggressive first
PERFORMANCE_PROFILE_NAMES = ("ultimate performance", "high performance")
HIGH_PERFORMANCE_GUID = "8c5e7fda-e8bf-4a96-9a85-a6e23a8c635c"


@dataclass
class OptimizeResult:
    """Outcome of optimize()."""
    success: bool
    state: State
    snapshot: Optional[Snapshot] = None
    apply_report: Optional[ApplyReport] = None
    profile_activated: bool = False
    profile_warning: Optional[str] = None
    prune: Optional[PruneSummary] = None
    error: Optional[str] = None

    @property
    def aborted(self) -> bool:
        return self.state == State.ABORTED


@dataclass
class RestoreOutcome:
    """Outcome of restore()."""
    success: bool
    state: State
    cancelled: bool = False
    snapshot_id: Optional[str] = None
    report: Optional[RestoreReport] = None
    error: Optional[str] = None


class Orchestrator:
    """
    Main entry point for optimize and restore.

    optimize: IDLE → BACKING_UP → APPLYING → SETTING_PROFILE → DONE
    restore:  IDLE → LISTING → AWAITING_SELECTION → CONFIRMING → RESTORING → DONE
    """

    def __init__(
        self,
        catalog: Sequence[TweakSpec],
        store: KeyValueStore,
        snapshots: SnapshotStore,
        profiles: Optional[ProfileManager] = None,
        interaction: Optional[UserInteraction] = None,
        retention: Optional[RetentionPolicy] = None,
    ):
        self.catalog = tuple(catalog)
        self.store = store
        self.snapshots = snapshots
        self.profiles = profiles
        self.interaction = interaction
        self.retention = retention or RetentionPolicy()

        self.apply_engine = ApplyEngine(store)
        self.restore_engine = RestoreEngine(store, profiles)
        self.status_engine = StatusEngine(store)

        self.state_machine = StateMachine()
        self._on_state_change: List[Callable[[StateEvent], None]] = []

    def on_state_change(self, callback: Callable[[StateEvent], None]):
        """Register callback for state changes of every operation."""
        self._on_state_change.append(callback)

    def _new_machine(self) -> StateMachine:
        self.state_machine = StateMachine()
        for callback in self._on_state_change:
            self.state_machine.on_transition(callback)
        return self.state_machine

    # =========================================================================
    # Optimize
    # =========================================================================

    def optimize(self) -> OptimizeResult:
        """
        Back up, apply the catalog, switch to a performance profile.

        A failed backup aborts before anything is written.
        """
        machine = self._new_machine()
        active_profile = self._active_profile()

        machine.transition(State.BACKING_UP)
        try:
            snapshot = self.snapshots.create(self.catalog, active_profile)
        except BackupError as e:
            logger.error("Backup failed, nothing was changed: %s", e)
            machine.transition(State.ABORTED, {"error": str(e)})
            return OptimizeResult(success=False, state=State.ABORTED, error=str(e))

        prune = self._prune()

        machine.transition(State.APPLYING, {"snapshot": snapshot.snapshot_id})
        apply_report = self.apply_engine.apply(self.catalog)

        machine.transition(State.SETTING_PROFILE)
        activated, warning = self._set_performance_profile()

        machine.transition(State.DONE, {"failed": apply_report.failed})
        return OptimizeResult(
            success=apply_report.success,
            state=State.DONE,
            snapshot=snapshot,
            apply_report=apply_report,
            profile_activated=activated,
            profile_warning=warning,
            prune=prune,
        )

    def _active_profile(self) -> ActiveProfile:
        if self.profiles is None:
            return ActiveProfile.unknown()
        try:
            return self.profiles.get_active()
        except Exception as e:
            logger.warning("Could not read the active power profile: %s", e)
            return ActiveProfile.unknown()

    def _prune(self) -> Optional[PruneSummary]:
        try:
            return self.snapshots.prune(self.retention)
        except Exception as e:
            logger.warning("Snapshot retention pass failed: %s", e)
            return None

    def _set_performance_profile(self) -> Tuple[bool, Optional[str]]:
        """Returns (activated, warning). Never raises."""
        if self.profiles is None:
            return False, None

        try:
            target = choose_performance_profile(self.profiles.list_profiles())
            if target is None:
                warning = "No performance power profile is available on this system"
                logger.warning(warning)
                return False, warning
            if not target.is_active:
                self.profiles.activate(target.id)
            logger.info("Power profile set to %s (%s)", target.name, target.id)
            return True, None
        except Exception as e:
            warning = f"Could not set the performance power profile: {e}"
            logger.warning(warning)
            return False, warning

    # =========================================================================
    # Restore
    # =========================================================================

    def restore(
        self,
        snapshot_id: Optional[str] = None,
        selection: Optional[Iterable[int]] = None,
    ) -> RestoreOutcome:
        """
        Restore a snapshot after explicit confirmation.

        Args:
            snapshot_id: Snapshot to restore (asks the operator if None)
            selection: Positions of entries to restore (all if None)
        """
        if selection is not None:
            selection = list(selection)

        machine = self._new_machine()

        machine.transition(State.LISTING)
        summaries = self.snapshots.list()
        if not summaries:
            error = NoSnapshotsError(f"No snapshots found in {self.snapshots.backup_root}")
            return self._abort_restore(str(error), None)

        machine.transition(State.AWAITING_SELECTION)
        if snapshot_id is None:
            if self.interaction is None:
                return self._abort_restore("No snapshot selected", None)
            snapshot_id = self.interaction.select_snapshot(summaries)
            if snapshot_id is None:
                return self._cancel_restore(None)
        elif snapshot_id not in {s.snapshot_id for s in summaries}:
            return self._abort_restore(f"Snapshot '{snapshot_id}' not found", snapshot_id)

        machine.transition(State.CONFIRMING, {"snapshot": snapshot_id})
        message = self._confirmation_message(snapshot_id, summaries, selection)
        if self.interaction is None or not self.interaction.confirm(message):
            return self._cancel_restore(snapshot_id)

        machine.transition(State.RESTORING)
        try:
            snapshot = self.snapshots.load(snapshot_id)
        except BackupError as e:
            return self._abort_restore(str(e), snapshot_id)
        if not self.snapshots.verify(snapshot_id):
            return self._abort_restore(f"Snapshot '{snapshot_id}' failed verification", snapshot_id)

        try:
            report = self.restore_engine.apply(snapshot, selection)
        except ValueError as e:
            return self._abort_restore(str(e), snapshot_id)

        machine.transition(State.DONE, {"failed": report.failed})
        return RestoreOutcome(
            success=report.failed == 0,
            state=State.DONE,
            snapshot_id=snapshot_id,
            report=report,
        )

    def _abort_restore(self, error: str, snapshot_id: Optional[str]) -> RestoreOutcome:
        logger.error("Restore aborted: %s", error)
        self.state_machine.transition(State.ABORTED, {"error": error})
        return RestoreOutcome(success=False, state=State.ABORTED, snapshot_id=snapshot_id, error=error)

    def _cancel_restore(self, snapshot_id: Optional[str]) -> RestoreOutcome:
        logger.info("Restore cancelled by operator")
        self.state_machine.transition(State.DONE, {"cancelled": True})
        return RestoreOutcome(success=False, state=State.DONE, cancelled=True, snapshot_id=snapshot_id)

    def _confirmation_message(
        self,
        snapshot_id: str,
        summaries: Sequence[SnapshotSummary],
        selection: Optional[Iterable[int]],
    ) -> str:
        summary = next((s for s in summaries if s.snapshot_id == snapshot_id), None)
        message = f"Restore {snapshot_id}"
        if summary is not None:
            message += f" (created {summary.created_at:%Y-%m-%d %H:%M:%S}, {summary.entry_count} values)"

        preview = self.preview(snapshot_id, selection)
        if preview is not None:
            message += f". {preview.total_changes} value(s) differ from the current state"
        return message + ". Continue?"

    def preview(self, snapshot_id: str, selection: Optional[Iterable[int]] = None) -> Optional[RestorePreview]:
        """Dry-run a restore; None if the snapshot cannot be read."""
        try:
            snapshot = self.snapshots.load(snapshot_id)
            return self.restore_engine.preview(snapshot, selection)
        except (BackupError, ValueError) as e:
            logger.debug("Preview of %s unavailable: %s", snapshot_id, e)
            return None

    # =========================================================================
    # Query Operations
    # =========================================================================

    def status(self) -> StatusReport:
        return self.status_engine.evaluate(self.catalog)

    def list_snapshots(self) -> List[SnapshotSummary]:
        return self.snapshots.list()


def choose_performance_profile(profiles: Sequence[Profile]) -> Optional[Profile]:
    """Pick the most aggressive performance profile available."""
    by_name = {p.name.strip().lower(): p for p in profiles}
    for name in PERFORMANCE_PROFILE_NAMES:
        if name in by_name:
            return by_name[name]
    for profile in profiles:
        if profile.id.lower() == HIGH_PERFORMANCE_GUID:
            return profile
    return None
