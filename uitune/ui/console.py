"""
ConsoleUI - Rich-based console output.

Formats status, snapshot listings and operation summaries.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..protocol.result import ApplyReport, RestoreReport, StatusReport
from ..runner.engine import OptimizeResult, RestoreOutcome
from ..runner.state import State
from ..snapshot.models import RestorePreview, SnapshotSummary
from .. import __version__


class ConsoleUI:
    """
    Rich console interface for uitune.
    """

    def __init__(self, quiet: bool = False, console: Optional[Console] = None):
        self.quiet = quiet
        self.console = console or Console()

    def print(self, *args, **kwargs):
        """Print to console."""
        if self.quiet:
            return
        self.console.print(*args, **kwargs)

    def print_header(self, title: str):
        """Print a section header."""
        if self.quiet:
            return
        self.console.print()
        self.console.rule(f"[bold blue]{title}[/]")

    def print_banner(self):
        """Print application banner."""
        if self.quiet:
            return
        banner = f"""
[bold cyan]uitune[/] [dim]v{__version__}[/]
[dim]Desktop responsiveness tweaks with verified backups[/]
        """
        self.console.print(Panel(banner.strip(), border_style="cyan"))

    def print_error(self, message: str):
        # Errors are shown even in quiet mode
        self.console.print(f"[bold red]Error:[/] {message}")

    def print_warning(self, message: str):
        self.print(f"[yellow]Warning:[/] {message}")

    def print_success(self, message: str):
        self.print(f"[green]{message}[/]")

    def print_state_change(self, from_state: State, to_state: State, metadata: Dict = None):
        """Display state transition."""
        status_colors = {
            State.BACKING_UP: "blue",
            State.APPLYING: "yellow",
            State.SETTING_PROFILE: "cyan",
            State.LISTING: "blue",
            State.AWAITING_SELECTION: "bold cyan",
            State.CONFIRMING: "bold cyan",
            State.RESTORING: "yellow",
            State.DONE: "bold green",
            State.ABORTED: "bold red",
        }
        color = status_colors.get(to_state, "white")
        self.print(f"[dim]{from_state.name}[/] -> [{color}]{to_state.name}[/]")

    # =========================================================================
    # Status / Listing
    # =========================================================================

    def print_status(self, report: StatusReport):
        self.print_header("Optimization Status")

        table = Table(box=box.SIMPLE)
        table.add_column("Tweak")
        table.add_column("Current", justify="right")
        table.add_column("Target", justify="right")
        table.add_column("", justify="center")

        for row in report.rows:
            current = _fmt(row.current_value) if row.exists else "[dim](not set)[/]"
            mark = "[green]✓[/]" if row.is_optimized else "[red]✗[/]"
            table.add_row(row.identity, current, _fmt(row.desired_value), mark)

        self.print(table)
        color = "green" if report.percentage >= 100 else "yellow" if report.percentage > 0 else "red"
        self.print(
            f"[{color}]{report.optimized_count}/{report.total_count} optimized "
            f"({report.percentage:.1f}%)[/]"
        )

    def print_snapshots(self, summaries: List[SnapshotSummary], numbered: bool = False):
        self.print_header("Backups")
        if not summaries:
            self.print("[dim]No backups found.[/]")
            return

        table = Table(box=box.SIMPLE)
        if numbered:
            table.add_column("#", justify="right", style="bold")
        table.add_column("Backup")
        table.add_column("Created")
        table.add_column("Values", justify="right")
        table.add_column("Power plan")
        table.add_column("State")

        for index, summary in enumerate(summaries, start=1):
            state = "[green]valid[/]" if summary.is_valid else f"[red]corrupt[/] [dim]{summary.error or ''}[/]"
            row = [
                summary.snapshot_id,
                f"{summary.created_at:%Y-%m-%d %H:%M:%S}",
                str(summary.entry_count) if summary.is_valid else "-",
                summary.profile_name or "-",
                state,
            ]
            if numbered:
                row.insert(0, str(index))
            table.add_row(*row)

        self.print(table)

    def print_restore_preview(self, preview: RestorePreview):
        if not preview.changes:
            self.print("[dim]Current state already matches this backup.[/]")
            return

        table = Table(title="Changes on restore", box=box.SIMPLE)
        table.add_column("Tweak")
        table.add_column("Current")
        table.add_column("After restore")
        for change in preview.changes:
            current = _fmt(change.current_value) if change.current_exists else "[dim](not set)[/]"
            after = _fmt(change.snapshot_value) if change.snapshot_existed else "[yellow](deleted)[/]"
            table.add_row(change.identity, current, after)
        self.print(table)

    # =========================================================================
    # Operation summaries
    # =========================================================================

    def print_apply_report(self, report: ApplyReport, title: str = "Applied"):
        color = "green" if report.failed == 0 else "yellow"
        self.print(f"[{color}]{title}: {report.succeeded} succeeded, {report.failed} failed[/]")
        for identity in report.failed_identities:
            self.print(f"  [red]✗[/] {identity}")

    def print_optimize_result(self, result: OptimizeResult, log_path: Optional[Path] = None):
        self.print_header("Optimize Summary")
        if result.aborted:
            self.print_error(f"Backup failed, no changes were made: {result.error}")
        else:
            snapshot = result.snapshot
            self.print(f"Backup: [bold]{snapshot.snapshot_id}[/] [dim]({snapshot.directory})[/]")
            self.print_apply_report(result.apply_report)
            if result.profile_activated:
                self.print("Power plan: [green]performance profile active[/]")
            elif result.profile_warning:
                self.print_warning(result.profile_warning)
            if result.prune and result.prune.removed:
                self.print(f"[dim]Removed {len(result.prune.removed)} old backup(s)[/]")
            self.print("[dim]Sign out or restart Explorer for all changes to take effect.[/]")
        self._print_log_path(log_path)

    def print_restore_outcome(self, outcome: RestoreOutcome, log_path: Optional[Path] = None):
        self.print_header("Restore Summary")
        if outcome.cancelled:
            self.print("[yellow]Restore cancelled, nothing was changed.[/]")
        elif outcome.state == State.ABORTED:
            self.print_error(f"Restore aborted: {outcome.error}")
        else:
            report: RestoreReport = outcome.report
            self.print(f"Backup: [bold]{outcome.snapshot_id}[/]")
            self.print_apply_report(report, title="Restored")
            if report.profile_restored:
                self.print("Power plan: [green]restored[/]")
            elif report.profile_warning:
                self.print_warning(report.profile_warning)
            for warning in report.type_warnings:
                self.print_warning(warning)
        self._print_log_path(log_path)

    def _print_log_path(self, log_path: Optional[Path]):
        if log_path:
            self.print(f"[dim]Log: {log_path}[/]")


def _fmt(value: Any) -> str:
    if value is None:
        return "-"
    return str(value)
