"""
Remove Command

Destructive: tears the web stack down after explicit confirmation.
"""

from webstack.base import BaseCommand
from webstack.exceptions import ConfirmationDeclinedError
from webstack.models.results import AggregateStatus, RemovalReport
from webstack.services.removal_service import RemovalCoordinator
from webstack.ui_components import aggregate_line, removal_table

CONFIRM_QUESTION = "[red]This will remove the entire web stack deployment! Are you sure?[/red]"


class RemoveCommand(BaseCommand):
    """
    Stop services, disable autostart and delete the stack directory.

    Declining the confirmation exits cleanly before any credential prompt
    or remote call.
    """

    def execute(self) -> int:
        """Execute remove command."""
        targets = self.context.fleet.with_role(self.context.settings.target_group)
        self.show_header(
            title="Remove web stack",
            details={
                "Hosts": ", ".join(targets.names),
                "Stack directory": self.context.settings.stack_dir,
            },
        )

        if not self.confirm(CONFIRM_QUESTION):
            raise ConfirmationDeclinedError("removal")

        logger = self.init_logger("remove")
        coordinator = RemovalCoordinator(
            self.context.make_transport(logger),
            pool=self.context.make_pool(),
            target_role=self.context.settings.target_group,
            timeout=self.context.timeout,
            logger=logger,
        )
        report = coordinator.remove(self.context.fleet, confirm=lambda: True)

        self.context.state_service.forget_hosts(report.removed_hosts)
        return self.report(report)

    def report(self, report: RemovalReport) -> int:
        status = report.status
        failed = len(report.outcomes) - len(report.removed_hosts)

        self.console.print()
        self.console.print(removal_table(report))
        self.console.print(aggregate_line(status, len(report.outcomes), failed))

        if status != AggregateStatus.SUCCESS and self.logger:
            self.logger.has_errors = True
        return status.exit_code
