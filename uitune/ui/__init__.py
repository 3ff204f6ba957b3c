"""
UI module - Rich console interface.

Provides:
- ConsoleUI: status tables, backup listings, operation summaries
- InteractionManager: menu, snapshot selection, confirmations
"""

from .console import ConsoleUI
from .interaction import InteractionManager, MenuChoice, AutoConfirm

__all__ = [
    "ConsoleUI",
    "InteractionManager",
    "MenuChoice",
    "AutoConfirm",
]
