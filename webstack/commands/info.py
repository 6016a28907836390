"""
Info Command

Read-only: deployment details, services and listening ports per host.
"""

from webstack.commands.status import StatusCommand
from webstack.ui_components import info_tables


class InfoCommand(StatusCommand):
    """Show what is deployed where."""

    def execute(self) -> int:
        """Execute info command."""
        settings = self.context.settings
        last_apply = self.context.state_service.load_state().get("last_apply") or {}
        header_mode = self.context.state_service.last_header_mode()

        self.show_header(
            title="Show deployment information",
            details={
                "Inventory": settings.inventory_path,
                "Stack directory": settings.stack_dir,
                "Last apply": last_apply.get("timestamp", "never"),
                "Header mode": header_mode.value if header_mode else "not configured",
            },
        )
        logger = self.init_logger("info")
        logger.step("Collecting deployment information")

        for table in info_tables(self.inspector().describe(self.context.fleet)):
            self.console.print(table)
            self.console.print()

        self.print_dim("Access points: http://<host> (80), https://<host> (443), http://<host>:8080 (dashboard)")
        return 0
