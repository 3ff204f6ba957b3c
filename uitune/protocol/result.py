"""
Result Protocol - Engines → Orchestrator/UI.

Component operations return these reports instead of raising on partial
failure.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional


@dataclass
class ApplyReport:
    """Outcome of applying the catalog."""
    succeeded: int = 0
    failed: int = 0
    failed_identities: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.succeeded + self.failed

    @property
    def success(self) -> bool:
        return self.failed == 0

    def record_success(self) -> None:
        self.succeeded += 1

    def record_failure(self, identity: str) -> None:
        self.failed += 1
        self.failed_identities.append(identity)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class RestoreReport(ApplyReport):
    """Outcome of replaying a snapshot."""
    profile_restored: bool = False
    profile_warning: Optional[str] = None
    type_warnings: List[str] = field(default_factory=list)


@dataclass
class StatusRow:
    """Current vs desired state of one tweak."""
    identity: str
    current_value: Any
    desired_value: Any
    is_optimized: bool
    exists: bool = True


@dataclass
class StatusReport:
    """Per-tweak rows plus the aggregate optimization level."""
    rows: List[StatusRow] = field(default_factory=list)

    @property
    def total_count(self) -> int:
        return len(self.rows)

    @property
    def optimized_count(self) -> int:
        return sum(1 for row in self.rows if row.is_optimized)

    @property
    def percentage(self) -> float:
        if self.total_count == 0:
            return 0.0
        return round(self.optimized_count / self.total_count * 100, 1)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rows": [asdict(row) for row in self.rows],
            "optimized_count": self.optimized_count,
            "total_count": self.total_count,
            "percentage": self.percentage,
        }
