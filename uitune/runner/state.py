"""
StateMachine - Tracks the optimize and restore workflows.

Optimize:
IDLE → BACKING_UP → APPLYING → SETTING_PROFILE → DONE
            ↓
         ABORTED        (no verified snapshot: nothing is written)

Restore:
IDLE → LISTING → AWAITING_SELECTION → CONFIRMING → RESTORING → DONE
          ↓              ↓                ↓            ↓
       ABORTED        DONE (cancel)    DONE (cancel)  ABORTED
"""

from enum import Enum, auto
from typing import Callable, Dict, List, Optional, Any
from dataclasses import dataclass, field
from datetime import datetime

from ..protocol.errors import InvalidStateTransition


class State(Enum):
    """Orchestrator workflow states."""
    IDLE = auto()
    BACKING_UP = auto()
    APPLYING = auto()
    SETTING_PROFILE = auto()
    LISTING = auto()
    AWAITING_SELECTION = auto()
    CONFIRMING = auto()
    RESTORING = auto()
    DONE = auto()
    ABORTED = auto()


# Valid state transitions
TRANSITIONS: Dict[State, List[State]] = {
    State.IDLE: [State.BACKING_UP, State.LISTING],
    State.BACKING_UP: [State.APPLYING, State.ABORTED],   # APPLYING only after a verified snapshot
    State.APPLYING: [State.SETTING_PROFILE],
    State.SETTING_PROFILE: [State.DONE],
    State.LISTING: [State.AWAITING_SELECTION, State.ABORTED],
    State.AWAITING_SELECTION: [State.CONFIRMING, State.DONE, State.ABORTED],
    State.CONFIRMING: [State.RESTORING, State.DONE],
    State.RESTORING: [State.DONE, State.ABORTED],
    State.DONE: [],
    State.ABORTED: [],
}


@dataclass
class StateEvent:
    """Record of a state transition."""
    from_state: State
    to_state: State
    timestamp: datetime
    duration_ms: int
    metadata: Dict[str, Any] = field(default_factory=dict)


class StateMachine:
    """
    Manages state transitions for one orchestrator operation.

    Ensures valid transitions and tracks history.
    """

    def __init__(self, initial_state: State = State.IDLE):
        self._state = initial_state
        self._history: List[StateEvent] = []
        self._state_entered_at = datetime.now()
        self._callbacks: List[Callable[[StateEvent], None]] = []

    @property
    def state(self) -> State:
        """Get current state."""
        return self._state

    @property
    def history(self) -> List[StateEvent]:
        """Get state transition history."""
        return self._history.copy()

    def can_transition(self, to_state: State) -> bool:
        """Check if transition to target state is valid."""
        return to_state in TRANSITIONS.get(self._state, [])

    def transition(self, to_state: State, metadata: Optional[Dict[str, Any]] = None):
        """
        Transition to a new state.

        Args:
            to_state: Target state
            metadata: Optional data about the transition

        Raises:
            InvalidStateTransition: If transition is not valid
        """
        if not self.can_transition(to_state):
            raise InvalidStateTransition(
                f"Invalid transition: {self._state.name} → {to_state.name}. "
                f"Valid transitions: {[s.name for s in TRANSITIONS.get(self._state, [])]}"
            )

        now = datetime.now()
        event = StateEvent(
            from_state=self._state,
            to_state=to_state,
            timestamp=now,
            duration_ms=int((now - self._state_entered_at).total_seconds() * 1000),
            metadata=metadata or {},
        )
        self._history.append(event)
        self._state = to_state
        self._state_entered_at = now

        for callback in self._callbacks:
            callback(event)

    def on_transition(self, callback: Callable[[StateEvent], None]):
        """Register callback for every transition."""
        self._callbacks.append(callback)

    def is_terminal(self) -> bool:
        """Check if in terminal state (DONE or ABORTED)."""
        return self._state in (State.DONE, State.ABORTED)

    def visited(self, state: State) -> bool:
        """True if the machine has entered state at any point."""
        return any(event.to_state == state for event in self._history)

    def format_history(self) -> str:
        """Format history as human-readable string."""
        return '\n'.join(
            f"{event.from_state.name} → {event.to_state.name} ({event.duration_ms}ms)"
            for event in self._history
        )
