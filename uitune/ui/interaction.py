"""
InteractionManager - Operator prompts.

Handles:
- Main menu
- Snapshot selection
- Explicit confirmations (restore never proceeds on a default answer)
"""

from enum import Enum
from typing import Optional, Sequence

from rich.console import Console
from rich.prompt import Confirm, Prompt

from ..snapshot.models import SnapshotSummary
from ..system.base import UserInteraction
from .console import ConsoleUI


class MenuChoice(str, Enum):
    """Main menu actions."""
    OPTIMIZE = "1"
    RESTORE = "2"
    STATUS = "3"
    LIST = "4"
    QUIT = "Q"


class InteractionManager(UserInteraction):
    """Rich prompts implementing UserInteraction."""

    def __init__(self, ui: Optional[ConsoleUI] = None, console: Optional[Console] = None):
        self.ui = ui or ConsoleUI(console=console)
        self.console = self.ui.console

    def main_menu(self) -> MenuChoice:
        self.console.print()
        self.console.print("[bold]  1[/] Optimize (backup, then apply tweaks)")
        self.console.print("[bold]  2[/] Restore a backup")
        self.console.print("[bold]  3[/] Show status")
        self.console.print("[bold]  4[/] List backups")
        self.console.print("[bold]  Q[/] Quit")

        while True:
            choice = Prompt.ask("[bold]Your choice[/]", default="Q", show_default=False).strip().upper()
            try:
                return MenuChoice(choice)
            except ValueError:
                self.console.print("[yellow]Invalid choice. Try again.[/]")

    def confirm(self, message: str) -> bool:
        return Confirm.ask(f"[bold yellow]{message}[/]", default=False, console=self.console)

    def select_snapshot(self, summaries: Sequence[SnapshotSummary]) -> Optional[str]:
        """Numbered pick from the listing; empty input cancels."""
        self.ui.print_snapshots(list(summaries), numbered=True)

        while True:
            choice = Prompt.ask(
                "[bold]Backup number to restore[/] [dim](ENTER to cancel)[/]",
                default="",
                show_default=False,
                console=self.console,
            ).strip()
            if not choice:
                return None
            if choice.isdigit() and 1 <= int(choice) <= len(summaries):
                selected = summaries[int(choice) - 1]
                if not selected.is_valid:
                    self.console.print("[red]That backup is corrupt and cannot be restored.[/]")
                    continue
                return selected.snapshot_id
            self.console.print(f"[yellow]Enter a number between 1 and {len(summaries)}.[/]")


class AutoConfirm(UserInteraction):
    """Non-interactive answers for command-line modes."""

    def __init__(self, answer: bool = False, snapshot_id: Optional[str] = None):
        self.answer = answer
        self.snapshot_id = snapshot_id

    def confirm(self, message: str) -> bool:
        return self.answer

    def select_snapshot(self, summaries: Sequence[SnapshotSummary]) -> Optional[str]:
        return self.snapshot_id
