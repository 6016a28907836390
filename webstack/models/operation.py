"""
Operation Models

Operator operations and the apply plans built from them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional

from webstack.constants import PHASE_ORDER, PHASE_VARS


class Operation(Enum):
    """Operation selected once per invocation."""

    FULL_DEPLOY = "full"
    DOCKER_ONLY = "docker"
    WEB_ONLY = "web"
    UPDATE = "update"
    STATUS = "status"
    CONFIGURE_HEADERS = "headers"
    INFO = "info"
    REMOVE = "remove"

    @property
    def is_apply(self) -> bool:
        """Check if operation goes through the planner and executor."""
        return self in APPLY_OPERATIONS

    @property
    def label(self) -> str:
        return OPERATION_LABELS[self]


APPLY_OPERATIONS = frozenset(
    {
        Operation.FULL_DEPLOY,
        Operation.DOCKER_ONLY,
        Operation.WEB_ONLY,
        Operation.UPDATE,
        Operation.CONFIGURE_HEADERS,
    }
)

OPERATION_LABELS = {
    Operation.FULL_DEPLOY: "Deploy full web stack (Docker + Traefik + Nginx)",
    Operation.DOCKER_ONLY: "Deploy Docker only",
    Operation.WEB_ONLY: "Deploy Traefik + Nginx (requires Docker)",
    Operation.UPDATE: "Update existing deployment",
    Operation.STATUS: "Check deployment status",
    Operation.CONFIGURE_HEADERS: "Configure header mode",
    Operation.INFO: "Show deployment info",
    Operation.REMOVE: "Remove web stack",
}


@dataclass(frozen=True)
class PhaseFlags:
    """Which installation phases an apply runs."""

    docker: bool = False
    compose: bool = False
    traefik: bool = False
    nginx: bool = False

    @property
    def enabled(self) -> List[str]:
        """Enabled phases in their fixed intra-host order."""
        return [phase for phase in PHASE_ORDER if getattr(self, phase)]

    @property
    def any(self) -> bool:
        return bool(self.enabled)

    def to_extra_vars(self) -> Dict[str, bool]:
        """Map flags to the playbook's install_* variables."""
        return {PHASE_VARS[phase]: getattr(self, phase) for phase in PHASE_ORDER}

    def only(self, phase: str) -> "PhaseFlags":
        """Flags with just one phase enabled."""
        return PhaseFlags(**{name: name == phase for name in PHASE_ORDER})

    def to_dict(self) -> Dict[str, bool]:
        return {phase: getattr(self, phase) for phase in PHASE_ORDER}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PhaseFlags":
        data = data or {}
        return cls(**{phase: bool(data.get(phase, False)) for phase in PHASE_ORDER})


@dataclass
class PlanRequest:
    """Concrete apply plan for one invocation."""

    operation: Operation
    phases: PhaseFlags
    tags: FrozenSet[str] = frozenset()
    variables: Dict[str, Any] = field(default_factory=dict)
    host_variables: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    @property
    def tag_list(self) -> List[str]:
        """Tag filter in a stable order for command lines."""
        return sorted(self.tags)

    def variables_for(self, host_name: str) -> Dict[str, Any]:
        """Plan variables with the host-specific ones layered on top."""
        merged = dict(self.variables)
        merged.update(self.host_variables.get(host_name, {}))
        return merged

    def __repr__(self) -> str:
        return (
            f"PlanRequest(operation={self.operation.value}, "
            f"phases={self.phases.enabled}, tags={self.tag_list})"
        )
