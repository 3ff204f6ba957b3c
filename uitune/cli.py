"""
CLI - Command-line interface for uitune.

Modes: optimize, restore, status, list backups. Without a mode flag an
interactive menu loops until the operator quits.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console

from . import __version__
from .catalog import DEFAULT_CATALOG, load_catalog
from .config import Config
from .logs import setup_logging
from .protocol.errors import PrivilegeError, UituneError
from .runner.engine import Orchestrator
from .snapshot.manager import SnapshotStore
from .system.power import PowerCfgProfileManager
from .system.privileges import is_admin, is_windows
from .system.registry import RegExporter, WindowsRegistryStore
from .ui import AutoConfirm, ConsoleUI, InteractionManager, MenuChoice

logger = logging.getLogger("uitune.cli")

# --restore given without an ID
SELECT_INTERACTIVELY = "__select__"


def max_backups_type(value: str) -> int:
    """argparse type for -k/--max-backups: integer in 1..100."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"must be an integer, got '{value}'")
    if not 1 <= number <= 100:
        raise argparse.ArgumentTypeError(f"must be between 1 and 100, got {number}")
    return number


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="uitune",
        description="Windows UI responsiveness tweaks with verified backups",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    uitune                         # interactive menu
    uitune --optimize --yes        # back up, then apply all tweaks
    uitune --restore               # pick a backup and restore it
    uitune --restore backup_20240115_093000
    uitune --status
    uitune --list-backups -k 5

Environment Variables:
    UITUNE_BACKUP_ROOT    Backup directory
    UITUNE_MAX_BACKUPS    Number of backups to keep (1-100)
        """,
    )

    parser.add_argument("--version", action="version", version=f"uitune {__version__}")

    # Output
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug output")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only show errors")

    # Storage
    parser.add_argument(
        "-k", "--max-backups",
        type=max_backups_type,
        default=None,
        metavar="N",
        help="Number of backups to keep, 1-100 (default: 10)",
    )
    parser.add_argument("--backup-root", metavar="PATH", help="Backup directory")
    parser.add_argument("--config", metavar="PATH", help="Config file (TOML)")
    parser.add_argument("--catalog", metavar="PATH", help="Custom tweak catalog (TOML)")

    # Modes
    modes = parser.add_mutually_exclusive_group()
    modes.add_argument("--optimize", action="store_true", help="Back up, then apply all tweaks")
    modes.add_argument(
        "--restore",
        nargs="?",
        const=SELECT_INTERACTIVELY,
        default=None,
        metavar="ID",
        help="Restore a backup (prompts for one if ID is omitted)",
    )
    modes.add_argument("--status", action="store_true", help="Show optimization status")
    modes.add_argument("--list-backups", action="store_true", help="List backups")

    parser.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Do not ask before optimizing (restore always asks)",
    )

    return parser.parse_args(argv)


def check_privileges():
    """Raise PrivilegeError unless running elevated on Windows."""
    if not is_windows():
        raise PrivilegeError("uitune only runs on Windows")
    if not is_admin():
        raise PrivilegeError("Administrator privileges are required. Run from an elevated prompt.")


def build_orchestrator(config: Config, interaction: InteractionManager) -> Orchestrator:
    """Wire the Windows collaborators into an Orchestrator."""
    catalog = load_catalog(config.catalog.path) if config.catalog.path else DEFAULT_CATALOG

    store = WindowsRegistryStore()
    snapshots = SnapshotStore(config.backup.root, store, exporter=RegExporter())
    snapshots.ensure_root()

    return Orchestrator(
        catalog=catalog,
        store=store,
        snapshots=snapshots,
        profiles=PowerCfgProfileManager(),
        interaction=interaction,
        retention=config.backup.retention(),
    )


# =============================================================================
# Modes
# =============================================================================

def run_optimize(orchestrator: Orchestrator, ui: ConsoleUI, interaction: InteractionManager,
                 assume_yes: bool, log_path: Optional[Path]) -> bool:
    confirmer = AutoConfirm(answer=True) if assume_yes else interaction
    message = (f"Back up and apply {len(orchestrator.catalog)} tweaks "
               f"and switch to a performance power plan?")
    if not confirmer.confirm(message):
        ui.print("[yellow]Cancelled, nothing was changed.[/]")
        return True

    result = orchestrator.optimize()
    ui.print_optimize_result(result, log_path)
    return result.success


def run_restore(orchestrator: Orchestrator, ui: ConsoleUI, snapshot_id: Optional[str],
                log_path: Optional[Path]) -> bool:
    if snapshot_id is not None:
        preview = orchestrator.preview(snapshot_id)
        if preview is not None:
            ui.print_restore_preview(preview)

    outcome = orchestrator.restore(snapshot_id)
    ui.print_restore_outcome(outcome, log_path)
    return outcome.success or outcome.cancelled


def run_status(orchestrator: Orchestrator, ui: ConsoleUI) -> bool:
    ui.print_status(orchestrator.status())
    return True


def run_list(orchestrator: Orchestrator, ui: ConsoleUI) -> bool:
    ui.print_snapshots(orchestrator.list_snapshots())
    return True


def interactive_menu(orchestrator: Orchestrator, ui: ConsoleUI, interaction: InteractionManager,
                     log_path: Optional[Path]) -> bool:
    """Loop over the main menu until the operator quits."""
    ok = True
    while True:
        choice = interaction.main_menu()
        if choice == MenuChoice.QUIT:
            return ok
        if choice == MenuChoice.OPTIMIZE:
            ok = run_optimize(orchestrator, ui, interaction, False, log_path)
        elif choice == MenuChoice.RESTORE:
            ok = run_restore(orchestrator, ui, None, log_path)
        elif choice == MenuChoice.STATUS:
            ok = run_status(orchestrator, ui)
        elif choice == MenuChoice.LIST:
            ok = run_list(orchestrator, ui)


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)
    console = Console()
    ui = ConsoleUI(quiet=args.quiet, console=console)

    try:
        config = Config.load(args.config).override_from_args(args)
    except (OSError, ValueError) as e:
        # tomllib.TOMLDecodeError is a ValueError
        ui.print_error(f"Cannot load configuration: {e}")
        sys.exit(1)

    errors = config.validate()
    if errors:
        for error in errors:
            ui.print_error(error)
        sys.exit(1)

    ui.quiet = config.output.quiet
    interaction = InteractionManager(ui=ui)
    log_path = None

    try:
        check_privileges()

        log_path = setup_logging(
            verbose=config.output.verbose,
            quiet=config.output.quiet,
            log_dir=config.log_dir,
        )
        logger.debug("uitune %s\n%s", __version__, config.summary())

        orchestrator = build_orchestrator(config, interaction)
        if config.output.verbose:
            orchestrator.on_state_change(
                lambda event: ui.print_state_change(event.from_state, event.to_state, event.metadata)
            )

        if args.optimize:
            ok = run_optimize(orchestrator, ui, interaction, args.yes, log_path)
        elif args.restore is not None:
            snapshot_id = None if args.restore == SELECT_INTERACTIVELY else args.restore
            ok = run_restore(orchestrator, ui, snapshot_id, log_path)
        elif args.status:
            ok = run_status(orchestrator, ui)
        elif args.list_backups:
            ok = run_list(orchestrator, ui)
        else:
            ui.print_banner()
            ui.print(f"[dim]Backups: {config.backup.root}[/]")
            ok = interactive_menu(orchestrator, ui, interaction, log_path)

    except KeyboardInterrupt:
        ui.print("\nInterrupted by user")
        sys.exit(130)

    except UituneError as e:
        logger.error("%s", e)
        ui.print_error(str(e))
        ui.print(f"[dim]Backups: {config.backup.root}[/]")
        if log_path:
            ui.print(f"[dim]Log: {log_path}[/]")
        sys.exit(1)

    except Exception as e:
        logger.exception("Unexpected error")
        ui.print_error(str(e))
        if log_path:
            ui.print(f"[dim]Log: {log_path}[/]")
        sys.exit(1)

    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
