"""
SnapshotStore - owns the on-disk snapshot layout.

    <backup_root>/backup_<YYYYMMDD_HHMMSS>/
        backup.json
        <HIVE>_<sanitized-path>.reg

Operations: create, verify, list, load, prune.
"""

import json
import logging
import re
import shutil
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple

from ..protocol.errors import (
    BackupError,
    BackupRootError,
    BackupVerificationError,
    SnapshotCollisionError,
    SnapshotCorruptError,
    SnapshotNotFoundError,
)
from ..protocol.tweak import Location, TweakSpec
from ..system.base import KeyValueStore, RawExporter
from .capture import SnapshotCapture
from .models import (
    METADATA_FILE,
    SNAPSHOT_ID_FORMAT,
    ActiveProfile,
    PruneSummary,
    RetentionPolicy,
    Snapshot,
    SnapshotSummary,
)

logger = logging.getLogger("uitune.snapshot")

SNAPSHOT_DIR_PATTERN = re.compile(r"^backup_\d{8}_\d{6}$")


def sanitize_path(path: str) -> str:
    """Turn a registry path into a file-name fragment."""
    return re.sub(r"[^A-Za-z0-9]+", "_", path).strip("_")


def export_file_name(location: Location, path: str) -> str:
    return f"{location.value}_{sanitize_path(path)}.reg"


class SnapshotStore:
    """Creates, verifies, enumerates and prunes snapshots under a backup root."""

    def __init__(
        self,
        backup_root: Path,
        store: KeyValueStore,
        exporter: Optional[RawExporter] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize snapshot store.

        Args:
            backup_root: Directory holding backup_* snapshot directories
            store: Registry access used to capture current values
            exporter: Optional raw exporter for out-of-band .reg files
            clock: Source of creation timestamps (datetime.now by default)
        """
        self.backup_root = Path(backup_root)
        self.store = store
        self.exporter = exporter
        self.clock = clock or datetime.now

        # Diagnostics from the last create()
        self.read_failures: List[str] = []
        self.export_failures: List[str] = []

    def _snapshot_dir(self, snapshot_id: str) -> Path:
        return self.backup_root / snapshot_id

    def ensure_root(self) -> Path:
        """Create the backup root if needed."""
        try:
            self.backup_root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise BackupRootError(f"Cannot create backup directory {self.backup_root}: {e}") from e
        if not self.backup_root.is_dir():
            raise BackupRootError(f"Backup root is not a directory: {self.backup_root}")
        return self.backup_root

    # =========================================================================
    # Create / Verify
    # =========================================================================

    def create(self, catalog: Iterable[TweakSpec], active_profile: ActiveProfile) -> Snapshot:
        """
        Capture and persist a verified snapshot.

        The snapshot is written to a staging directory that list() ignores,
        renamed into place and verified. A snapshot that fails verification
        is removed.

        Returns:
            The created snapshot, with snapshot_id and directory populated

        Raises:
            BackupRootError: backup root cannot be created
            SnapshotCollisionError: a snapshot with the same identifier exists
            BackupVerificationError: the written snapshot failed verification
            BackupError: metadata could not be written
        """
        catalog = list(catalog)
        root = self.ensure_root()

        created_at = self.clock().replace(microsecond=0)
        snapshot_id = created_at.strftime(SNAPSHOT_ID_FORMAT)
        final_dir = self._snapshot_dir(snapshot_id)
        if final_dir.exists():
            raise SnapshotCollisionError(
                f"Snapshot {snapshot_id} already exists; refusing to overwrite it"
            )

        capture = SnapshotCapture(self.store)
        entries = capture.capture(catalog)
        self.read_failures = list(capture.read_failures)
        snapshot = Snapshot.create(entries, active_profile, created_at)

        staging = root / f".{snapshot_id}.partial"
        shutil.rmtree(staging, ignore_errors=True)
        try:
            staging.mkdir(parents=True)
            self._write_metadata(snapshot, staging / METADATA_FILE)
        except OSError as e:
            shutil.rmtree(staging, ignore_errors=True)
            raise BackupError(f"Could not write snapshot metadata for {snapshot_id}: {e}") from e

        self.export_failures = self._export_raw(catalog, staging)

        try:
            staging.rename(final_dir)
        except OSError as e:
            shutil.rmtree(staging, ignore_errors=True)
            raise BackupError(f"Could not finalize snapshot {snapshot_id}: {e}") from e

        if not self.verify(snapshot_id):
            shutil.rmtree(final_dir, ignore_errors=True)
            raise BackupVerificationError(f"Snapshot {snapshot_id} failed verification")

        snapshot.snapshot_id = snapshot_id
        snapshot.directory = final_dir
        logger.info(
            "Created snapshot %s (%d entries, %d read failures, %d export failures)",
            snapshot_id, snapshot.entry_count, len(self.read_failures), len(self.export_failures),
        )
        return snapshot

    def _write_metadata(self, snapshot: Snapshot, path: Path) -> None:
        snapshot.save(path)

    def _export_raw(self, catalog: List[TweakSpec], directory: Path) -> List[str]:
        """Export each distinct (location, path) once. Failures are logged, never raised."""
        if self.exporter is None:
            logger.debug("No raw exporter configured, skipping .reg export")
            return []

        seen = set()
        targets: List[Tuple[Location, str]] = []
        for tweak in catalog:
            key = (tweak.location, tweak.path.lower())
            if key in seen:
                continue
            seen.add(key)
            targets.append((tweak.location, tweak.path))

        failures = []
        for location, path in targets:
            destination = directory / export_file_name(location, path)
            try:
                self.exporter.export(location, path, destination)
            except Exception as e:
                logger.warning("Raw export of %s\\%s failed: %s", location.value, path, e)
                failures.append(f"{location.value}\\{path}")
        return failures

    def verify(self, snapshot_id: str) -> bool:
        """
        Structural check of a snapshot's metadata.

        True when backup.json exists, parses, and has a timestamp and an
        entries list. Individual values are not re-checked.
        """
        path = self._snapshot_dir(snapshot_id) / METADATA_FILE
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.debug("Verification of %s failed: %s", snapshot_id, e)
            return False

        if not isinstance(data, dict):
            return False
        return bool(data.get("Timestamp")) and isinstance(data.get("RegistryValues"), list)

    # =========================================================================
    # Query Operations
    # =========================================================================

    def list(self) -> List[SnapshotSummary]:
        """
        List snapshot directories, newest first.

        Corrupt snapshots are included with is_valid=False.
        """
        if not self.backup_root.is_dir():
            return []

        summaries = []
        for child in self.backup_root.iterdir():
            if not child.is_dir() or not SNAPSHOT_DIR_PATTERN.match(child.name):
                continue
            summaries.append(self._summarize(child))

        summaries.sort(key=lambda s: s.snapshot_id, reverse=True)
        return summaries

    def _summarize(self, directory: Path) -> SnapshotSummary:
        try:
            snapshot = Snapshot.load(directory / METADATA_FILE)
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("Snapshot %s is unreadable: %s", directory.name, e)
            return SnapshotSummary(
                snapshot_id=directory.name,
                path=directory,
                created_at=_fs_created(directory),
                is_valid=False,
                error=str(e),
            )

        return SnapshotSummary(
            snapshot_id=directory.name,
            path=directory,
            created_at=_parse_created(snapshot.created_at, directory),
            is_valid=True,
            entry_count=snapshot.entry_count,
            host_identity=snapshot.host_identity,
            profile_name=snapshot.active_profile.name,
        )

    def load(self, snapshot_id: str) -> Snapshot:
        """
        Load a snapshot by identifier.

        Raises:
            SnapshotNotFoundError: no such snapshot directory
            SnapshotCorruptError: directory exists but metadata is unusable
        """
        if not SNAPSHOT_DIR_PATTERN.match(snapshot_id or ""):
            raise SnapshotNotFoundError(f"Snapshot '{snapshot_id}' not found")

        directory = self._snapshot_dir(snapshot_id)
        if not directory.is_dir():
            raise SnapshotNotFoundError(f"Snapshot '{snapshot_id}' not found in {self.backup_root}")

        try:
            snapshot = Snapshot.load(directory / METADATA_FILE)
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise SnapshotCorruptError(f"Snapshot '{snapshot_id}' is corrupt: {e}") from e

        snapshot.snapshot_id = snapshot_id
        snapshot.directory = directory
        return snapshot

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def prune(self, policy: RetentionPolicy) -> PruneSummary:
        """
        Remove the oldest snapshots beyond policy.max_snapshots.

        Best effort: a directory that cannot be deleted is logged and skipped.
        """
        summaries = self.list()
        summary = PruneSummary(kept=[s.snapshot_id for s in summaries[:policy.max_snapshots]])

        for snapshot in summaries[policy.max_snapshots:]:
            try:
                shutil.rmtree(snapshot.path)
            except OSError as e:
                logger.warning("Could not remove old snapshot %s: %s", snapshot.snapshot_id, e)
                summary.failed.append(snapshot.snapshot_id)
                continue
            logger.info("Removed old snapshot %s (retention %d)", snapshot.snapshot_id, policy.max_snapshots)
            summary.removed.append(snapshot.snapshot_id)

        return summary


def _fs_created(directory: Path) -> datetime:
    try:
        return datetime.fromtimestamp(directory.stat().st_ctime)
    except OSError:
        return datetime.fromtimestamp(0)


def _parse_created(timestamp: str, directory: Path) -> datetime:
    try:
        return datetime.fromisoformat(timestamp)
    except ValueError:
        try:
            return datetime.strptime(directory.name, SNAPSHOT_ID_FORMAT)
        except ValueError:
            return _fs_created(directory)
