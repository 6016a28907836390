"""
WebStack Domain Models

Clean dataclass-based models for type-safe data handling.
"""

from .headers import (
    DirectiveOrigin,
    HeaderDirective,
    HeaderMode,
    HeaderPolicy,
)
from .inventory import (
    Fleet,
    Host,
)
from .operation import (
    Operation,
    PhaseFlags,
    PlanRequest,
)
from .results import (
    AggregateStatus,
    DeploymentResult,
    ExecutionResult,
    HostInfo,
    HostStatus,
    RemovalOutcome,
    RemovalReport,
    RemovalState,
    RunState,
    StatusReport,
    StatusRow,
    aggregate_status,
)

__all__ = [
    # Headers
    "DirectiveOrigin",
    "HeaderDirective",
    "HeaderMode",
    "HeaderPolicy",
    # Inventory
    "Fleet",
    "Host",
    # Operations
    "Operation",
    "PhaseFlags",
    "PlanRequest",
    # Results
    "AggregateStatus",
    "DeploymentResult",
    "ExecutionResult",
    "HostInfo",
    "HostStatus",
    "RemovalOutcome",
    "RemovalReport",
    "RemovalState",
    "RunState",
    "StatusReport",
    "StatusRow",
    "aggregate_status",
]
