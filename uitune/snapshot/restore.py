"""
Snapshot restore - replays a snapshot onto the registry and power profile.
"""

import logging
from typing import Iterable, List, Optional

from ..protocol.result import RestoreReport
from ..system.base import KeyValueStore, ProfileManager
from ..tuning import codec
from .models import (
    ActiveProfile,
    EntryChange,
    RestorePreview,
    Snapshot,
    ValueSnapshot,
)

logger = logging.getLogger("uitune.restore")


class RestoreEngine:
    """Restores registry values and the power profile to snapshot state."""

    def __init__(self, store: KeyValueStore, profiles: Optional[ProfileManager] = None):
        self.store = store
        self.profiles = profiles

    def apply(self, snapshot: Snapshot, selection: Optional[Iterable[int]] = None) -> RestoreReport:
        """
        Restore snapshot entries, then the active profile.

        Entries that existed are written back with their observed type;
        entries that did not exist are deleted. One failing entry never
        stops the others.

        Args:
            snapshot: The snapshot to restore to
            selection: Positions in snapshot.entries to restore (all if None)

        Returns:
            RestoreReport with per-entry counts and profile outcome

        Raises:
            ValueError: a selected position is out of range (before any write)
        """
        report = RestoreReport()

        for entry in self._select(snapshot, selection):
            try:
                self._restore_entry(entry)
            except Exception as e:
                logger.error("Failed to restore %s (%s\\%s\\%s): %s",
                             entry.identity, entry.location.value, entry.path, entry.name, e)
                report.record_failure(entry.identity)
                continue
            report.record_success()
            if entry.existed and not codec.is_known_tag(entry.observed_type_tag):
                warning = (f"{entry.identity}: original type '{entry.observed_type_tag}' "
                           f"could not be preserved, restored as {codec.parse_type(None).value}")
                logger.warning(warning)
                report.type_warnings.append(warning)

        report.profile_restored, report.profile_warning = self._restore_profile(snapshot.active_profile)

        logger.info(
            "Restore of %s finished: %d succeeded, %d failed",
            snapshot.snapshot_id or snapshot.created_at, report.succeeded, report.failed,
        )
        return report

    def _select(self, snapshot: Snapshot, selection: Optional[Iterable[int]]) -> List[ValueSnapshot]:
        if selection is None:
            return list(snapshot.entries)

        positions = sorted(set(selection))
        invalid = [p for p in positions if not 0 <= p < len(snapshot.entries)]
        if invalid:
            raise ValueError(
                f"Selection positions out of range (0-{len(snapshot.entries) - 1}): {invalid}"
            )
        return [snapshot.entries[p] for p in positions]

    def _restore_entry(self, entry: ValueSnapshot) -> None:
        if not entry.existed:
            # Deletion restores the "did not exist" state; remove() is idempotent
            self.store.remove(entry.location, entry.path, entry.name)
            logger.debug("Removed %s (did not exist at backup time)", entry.identity)
            return

        value_type = codec.parse_type(entry.observed_type_tag)
        value = codec.encode(value_type, entry.value)
        self.store.set(entry.location, entry.path, entry.name, value_type, value)
        logger.debug("Restored %s = %r (%s)", entry.identity, value, value_type.value)

    def _restore_profile(self, profile: ActiveProfile):
        """Returns (restored, warning). Never raises."""
        if self.profiles is None:
            return False, None

        if not profile.id:
            warning = "Snapshot has no recorded power profile; leaving the current one active"
            logger.warning(warning)
            return False, warning

        try:
            known = {p.id.lower() for p in self.profiles.list_profiles()}
        except Exception as e:
            warning = f"Could not list power profiles: {e}"
            logger.warning(warning)
            return False, warning

        if profile.id.lower() not in known:
            warning = f"Power profile '{profile.name}' ({profile.id}) no longer exists on this system"
            logger.warning(warning)
            return False, warning

        try:
            self.profiles.activate(profile.id)
        except Exception as e:
            warning = f"Could not activate power profile '{profile.name}': {e}"
            logger.warning(warning)
            return False, warning

        logger.info("Restored power profile %s (%s)", profile.name, profile.id)
        return True, None

    def preview(self, snapshot: Snapshot, selection: Optional[Iterable[int]] = None) -> RestorePreview:
        """
        Show what would change without applying.

        Entries whose current state cannot be read are listed as changes.
        """
        changes = []
        for entry in self._select(snapshot, selection):
            try:
                current = self.store.get(entry.location, entry.path, entry.name)
                current_exists, current_value = current.exists, current.value
            except Exception as e:
                logger.debug("Preview read of %s failed: %s", entry.identity, e)
                current_exists, current_value = False, None

            if not entry.existed and not current_exists:
                continue
            if entry.existed and current_exists and codec.equal(
                    entry.observed_type_tag, current_value, entry.value):
                continue

            changes.append(EntryChange(
                identity=entry.identity,
                current_value=current_value,
                snapshot_value=entry.value,
                current_exists=current_exists,
                snapshot_existed=entry.existed,
            ))

        return RestorePreview(changes=changes)
