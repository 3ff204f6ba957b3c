"""
Configuration management for uitune.

Supports:
- TOML config files
- Environment variables
- Command-line overrides
- Sensible defaults

Priority (highest to lowest):
1. Command-line arguments
2. Environment variables
3. Config file
4. Defaults
"""

import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # Fallback for older Python

from .snapshot.models import RetentionPolicy


# Default config file locations (searched in order)
CONFIG_SEARCH_PATHS = [
    Path.cwd() / "uitune.toml",
    Path.home() / ".uitune" / "config.toml",
    Path.home() / ".config" / "uitune" / "config.toml",
]

ENV_BACKUP_ROOT = "UITUNE_BACKUP_ROOT"
ENV_MAX_BACKUPS = "UITUNE_MAX_BACKUPS"


def default_backup_root() -> Path:
    """%LOCALAPPDATA%\\uitune\\backups on Windows, ~/.uitune/backups elsewhere."""
    local_app_data = os.environ.get("LOCALAPPDATA")
    if local_app_data:
        return Path(local_app_data) / "uitune" / "backups"
    return Path.home() / ".uitune" / "backups"


@dataclass
class BackupConfig:
    """Snapshot storage configuration."""
    root: Path = field(default_factory=default_backup_root)
    max_snapshots: int = 10

    def retention(self) -> RetentionPolicy:
        return RetentionPolicy(max_snapshots=self.max_snapshots)


@dataclass
class OutputConfig:
    """Output configuration."""
    verbose: bool = False
    quiet: bool = False
    log_dir: Optional[Path] = None   # defaults to <backup root>/logs


@dataclass
class CatalogConfig:
    """Optional custom tweak catalog."""
    path: Optional[Path] = None


@dataclass
class Config:
    """Main configuration container."""
    backup: BackupConfig = field(default_factory=BackupConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)

    # Source tracking
    _config_file: Optional[Path] = None

    @property
    def log_dir(self) -> Path:
        return self.output.log_dir or (self.backup.root / "logs")

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "Config":
        """
        Load configuration from file, then apply environment overrides.

        Args:
            config_path: Explicit path to config file. If None, searches default locations.

        Returns:
            Config instance with loaded values
        """
        if config_path:
            path = Path(config_path)
            if not path.exists():
                raise FileNotFoundError(f"Config file not found: {config_path}")
        else:
            path = cls._find_config_file()

        if path:
            config = cls._load_from_file(path)
            config._config_file = path
        else:
            config = cls()

        return config.override_from_env(os.environ)

    @classmethod
    def _find_config_file(cls) -> Optional[Path]:
        """Find config file in default locations."""
        for path in CONFIG_SEARCH_PATHS:
            if path.exists():
                return path
        return None

    @classmethod
    def _load_from_file(cls, path: Path) -> "Config":
        """Load config from TOML file."""
        with open(path, "rb") as f:
            data = tomllib.load(f)

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create Config from dictionary."""
        config = cls()

        if "backup" in data:
            backup = data["backup"]
            root = backup.get("root")
            config.backup = BackupConfig(
                root=Path(root).expanduser() if root else config.backup.root,
                max_snapshots=backup.get("max_snapshots", config.backup.max_snapshots),
            )

        if "output" in data:
            out = data["output"]
            log_dir = out.get("log_dir")
            config.output = OutputConfig(
                verbose=out.get("verbose", config.output.verbose),
                quiet=out.get("quiet", config.output.quiet),
                log_dir=Path(log_dir).expanduser() if log_dir else None,
            )

        if "catalog" in data:
            path = data["catalog"].get("path")
            config.catalog = CatalogConfig(path=Path(path).expanduser() if path else None)

        return config

    def override_from_env(self, environ) -> "Config":
        """Apply UITUNE_* environment variables."""
        if environ.get(ENV_BACKUP_ROOT):
            self.backup.root = Path(environ[ENV_BACKUP_ROOT]).expanduser()
        if environ.get(ENV_MAX_BACKUPS):
            try:
                self.backup.max_snapshots = int(environ[ENV_MAX_BACKUPS])
            except ValueError:
                # Left as text so validate() reports it
                self.backup.max_snapshots = environ[ENV_MAX_BACKUPS]
        return self

    def override_from_args(self, args) -> "Config":
        """
        Override config values from argparse namespace.

        Args with value None are ignored (keeping config file values).
        """
        if getattr(args, "backup_root", None):
            self.backup.root = Path(args.backup_root).expanduser()
        if getattr(args, "max_backups", None) is not None:
            self.backup.max_snapshots = args.max_backups
        if getattr(args, "catalog", None):
            self.catalog.path = Path(args.catalog).expanduser()

        if getattr(args, "verbose", None):
            self.output.verbose = True
        if getattr(args, "quiet", None):
            self.output.quiet = True
            self.output.verbose = False

        return self

    def validate(self) -> list:
        """
        Validate configuration.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not str(self.backup.root).strip():
            errors.append("Backup root is required")

        try:
            self.backup.retention()
        except ValueError as e:
            errors.append(f"Invalid max_snapshots: {e}")

        if self.catalog.path and not self.catalog.path.exists():
            errors.append(f"Catalog file not found: {self.catalog.path}")

        return errors

    def summary(self) -> str:
        """Generate human-readable config summary."""
        lines = [f"Config: {self._config_file}" if self._config_file else "Config: (defaults)"]
        lines.append(f"Backups: {self.backup.root} (keep {self.backup.max_snapshots})")
        lines.append(f"Catalog: {self.catalog.path or '(built-in)'}")
        lines.append(f"Log: {self.log_dir}")
        return "\n".join(lines)
