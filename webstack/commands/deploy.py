"""
Deploy Command

Full, docker-only, web-only and update applies.
"""

from typing import List, Optional

from webstack.base import BaseCommand, CommandContext
from webstack.core.planner import DeploymentPlanner
from webstack.models.headers import HeaderMode
from webstack.models.operation import Operation, PlanRequest
from webstack.models.results import DeploymentResult, aggregate_status
from webstack.services.remote_executor import RemoteExecutor
from webstack.ui_components import aggregate_line, deployment_table


class DeployCommand(BaseCommand):
    """
    Plan an apply operation and run it across the fleet.

    Features:
    - Fixed phase/tag policy per operation
    - Parallel per-host apply with failure isolation
    - Exit code reflecting the worst-case aggregate status
    """

    def __init__(
        self,
        context: CommandContext,
        operation: Operation,
        planner: Optional[DeploymentPlanner] = None,
    ):
        super().__init__(context)
        self.operation = operation
        self.planner = planner or DeploymentPlanner()

    def build_plan(self) -> PlanRequest:
        last_flags = None
        if self.operation == Operation.UPDATE:
            last_flags = self.context.state_service.last_flags()
        return self.planner.plan(
            self.operation,
            self.context.overrides.to_extra_vars(),
            last_flags=last_flags,
        )

    def execute(self) -> int:
        """Execute deploy command."""
        plan = self.build_plan()

        self.show_header(
            title=self.operation.label,
            details={
                "Hosts": len(self.context.fleet.with_role(self.context.settings.target_group)),
                "Phases": ", ".join(plan.phases.enabled) or "config only",
                "Tags": ", ".join(plan.tag_list) or "all",
            },
        )

        logger = self.init_logger(self.operation.value)
        logger.step(self.operation.label)
        return self.apply(plan)

    def apply(self, plan: PlanRequest, header_mode: Optional[HeaderMode] = None) -> int:
        """Run a plan, report, and record state. Returns the exit code."""
        executor = RemoteExecutor(
            self.context.make_transport(self.logger),
            pool=self.context.make_pool(),
            target_role=self.context.settings.target_group,
            timeout=self.context.timeout,
            logger=self.logger,
        )

        results = executor.apply(plan, self.context.fleet)
        self.context.state_service.record_apply(plan, results, header_mode=header_mode)
        return self.report(results)

    def report(self, results: List[DeploymentResult]) -> int:
        status = aggregate_status(results)
        failed = sum(1 for result in results if not result.is_success)

        self.console.print()
        self.console.print(deployment_table(results))
        self.console.print(aggregate_line(status, len(results), failed))

        if self.logger:
            self.logger.log(f"Aggregate status: {status.value}")
            if failed:
                self.logger.has_errors = True
                self.console.print(f"\n[dim]Logs saved to:[/dim] {self.logger.log_path}\n")

        return status.exit_code
