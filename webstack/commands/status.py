"""
Status Command

Read-only: reports service state on every web server.
"""

from webstack.base import BaseCommand
from webstack.constants import STATUS_TIMEOUT
from webstack.models.results import StatusReport
from webstack.services.status_service import StatusInspector
from webstack.ui_components import status_table


class StatusCommand(BaseCommand):
    """Show {host, service, run state, healthy} for the whole fleet."""

    def inspector(self) -> StatusInspector:
        return StatusInspector(
            self.context.make_transport(self.logger),
            pool=self.context.make_pool(),
            target_role=self.context.settings.target_group,
            service_name=self.context.settings.service_name,
            timeout=min(self.context.timeout, STATUS_TIMEOUT),
            logger=self.logger,
        )

    def execute(self) -> int:
        """Execute status command."""
        self.show_header(
            title="Check deployment status",
            details={"Group": self.context.settings.target_group},
        )
        logger = self.init_logger("status")
        logger.step("Querying service state")

        report = self.inspector().query(self.context.fleet)
        self.report(report)
        return 0

    def report(self, report: StatusReport) -> None:
        self.console.print(status_table(report))

        if report.unreachable:
            self.print_warning(f"Unreachable: {', '.join(report.unreachable)}")
        elif report.all_healthy:
            self.print_success("All services healthy")
        else:
            unhealthy = [host for host in report.hosts if not report.host_healthy(host)]
            self.print_warning(f"Unhealthy services on: {', '.join(unhealthy)}")
