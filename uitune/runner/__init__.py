"""
Runner module - Orchestrates optimize and restore.

Components:
- StateMachine: Workflow state transitions
- Orchestrator: backup → apply → profile, and guarded restore
"""

from .state import StateMachine, State, StateEvent
from .engine import Orchestrator, OptimizeResult, RestoreOutcome

__all__ = [
    "StateMachine",
    "State",
    "StateEvent",
    "Orchestrator",
    "OptimizeResult",
    "RestoreOutcome",
]
