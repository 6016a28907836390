"""
Remote Executor

Applies a plan across the fleet with per-host failure isolation.
"""

import time
from typing import List, Optional

from webstack.constants import CONFIG_STEP, DEFAULT_TARGET_GROUP, DEFAULT_TIMEOUT
from webstack.exceptions import HostTimeoutError, PerHostExecutionError
from webstack.logger import DeployLogger
from webstack.models.inventory import Fleet, Host
from webstack.models.operation import PlanRequest
from webstack.models.results import DeploymentResult, HostStatus
from webstack.services.host_pool import HostPool
from webstack.services.transport import RemoteTransport


class RemoteExecutor:
    """
    Apply a PlanRequest to every host carrying the target role.

    Responsibilities:
    - Select target hosts by role tag
    - Run each host's phases in the fixed order docker, compose, traefik, nginx
    - Stop a host's sequence at its first failing phase
    - Fan hosts out over a bounded pool; one host never affects another
    """

    def __init__(
        self,
        transport: RemoteTransport,
        pool: Optional[HostPool] = None,
        target_role: str = DEFAULT_TARGET_GROUP,
        timeout: int = DEFAULT_TIMEOUT,
        logger: Optional[DeployLogger] = None,
    ):
        self.transport = transport
        self.pool = pool or HostPool()
        self.target_role = target_role
        self.timeout = timeout
        self.logger = logger

    def targets(self, fleet: Fleet) -> Fleet:
        return fleet.with_role(self.target_role)

    def apply(self, plan: PlanRequest, fleet: Fleet) -> List[DeploymentResult]:
        """
        Apply the plan to the fleet.

        Args:
            plan: Plan from DeploymentPlanner
            fleet: Hosts loaded from the inventory

        Returns:
            One DeploymentResult per targeted host, in inventory order

        Raises:
            OperationInterrupted: If the operator interrupted the run
        """
        targets = self.targets(fleet)
        if self.logger:
            self.logger.log(
                f"Applying {plan!r} to {len(targets)} host(s) "
                f"with {self.pool.workers_for(len(targets))} worker(s)"
            )

        return self.pool.run(
            list(targets),
            lambda host: self._apply_host(plan, host),
            self._unexpected_error,
        )

    def _apply_host(self, plan: PlanRequest, host: Host) -> DeploymentResult:
        steps = plan.phases.enabled or [CONFIG_STEP]
        completed: List[str] = []
        start_time = time.time()

        for step in steps:
            self._log(f"[{host.name}] {step}: starting")
            try:
                self.transport.apply_config(host, step, plan, self.timeout)
            except HostTimeoutError as e:
                return self._finish(host, HostStatus.TIMEOUT, e.format_message(), completed, start_time)
            except PerHostExecutionError as e:
                return self._finish(host, HostStatus.FAILURE, e.format_message(), completed, start_time)
            completed.append(step)
            self._log(f"[{host.name}] {step}: done")

        return self._finish(
            host, HostStatus.SUCCESS, f"applied {', '.join(steps)}", completed, start_time
        )

    def _finish(
        self,
        host: Host,
        status: HostStatus,
        message: str,
        completed: List[str],
        start_time: float,
    ) -> DeploymentResult:
        result = DeploymentResult(
            host=host.name,
            status=status,
            message=message,
            phases_completed=list(completed),
            duration_seconds=time.time() - start_time,
        )
        if self.logger:
            if result.is_success:
                self.logger.success(f"{host.name}: {message}")
            else:
                self.logger.failure(f"{host.name}: {status.value} - {message.splitlines()[0]}")
                self.logger.log(message, "ERROR")
        return result

    def _unexpected_error(self, host: Host, error: Exception) -> DeploymentResult:
        return DeploymentResult(
            host=host.name,
            status=HostStatus.FAILURE,
            message=f"{type(error).__name__}: {error}",
        )

    def _log(self, message: str) -> None:
        if self.logger:
            self.logger.log(message)
