"""Deployment planner: operator operation -> concrete apply plan"""

from typing import Any, Dict, Optional

from webstack.exceptions import UsageError
from webstack.models.operation import Operation, PhaseFlags, PlanRequest

ALL_PHASES = PhaseFlags(docker=True, compose=True, traefik=True, nginx=True)
NO_PHASES = PhaseFlags()
CONFIG_TAGS = frozenset({"config", "compose"})

# Fixed policy. Update is resolved from the last recorded apply.
PLAN_TABLE = {
    Operation.FULL_DEPLOY: (ALL_PHASES, frozenset()),
    Operation.DOCKER_ONLY: (
        PhaseFlags(docker=True, compose=True),
        frozenset({"docker"}),
    ),
    Operation.WEB_ONLY: (
        PhaseFlags(traefik=True, nginx=True),
        frozenset({"traefik", "nginx", "compose"}),
    ),
    Operation.UPDATE: (None, CONFIG_TAGS),
    Operation.CONFIGURE_HEADERS: (NO_PHASES, CONFIG_TAGS),
}


class DeploymentPlanner:
    """
    Maps an operation onto phase flags, a tag filter and variable overrides.

    Stateless. WEB_ONLY does not check that a docker phase ran before;
    split-phase workflows rely on that.
    """

    def plan(
        self,
        operation: Operation,
        overrides: Optional[Dict[str, Any]] = None,
        last_flags: Optional[PhaseFlags] = None,
    ) -> PlanRequest:
        """
        Build the plan for an apply operation.

        Args:
            operation: Operation to plan
            overrides: Invocation-time variables passed through to the apply
            last_flags: Phase flags of the last recorded apply (used by UPDATE)

        Returns:
            PlanRequest

        Raises:
            UsageError: If the operation does not apply configuration
        """
        if not operation.is_apply:
            raise UsageError(
                f"Operation '{operation.value}' has no apply plan",
                context="Only full, docker, web, update and headers apply configuration",
            )

        phases, tags = PLAN_TABLE[operation]
        if phases is None:
            phases = last_flags if last_flags is not None else NO_PHASES

        return PlanRequest(
            operation=operation,
            phases=phases,
            tags=tags,
            variables=dict(overrides or {}),
        )
