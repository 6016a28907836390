"""
WebStack - UI Components
Standardized headers and result tables
"""

from typing import Iterable, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from webstack.models.results import (
    AggregateStatus,
    DeploymentResult,
    HostInfo,
    HostStatus,
    RemovalReport,
    RunState,
    StatusReport,
)

LOGO = "webstack"

# Color scheme
BRAND_COLOR = "cyan"
SUCCESS_COLOR = "green"
WARNING_COLOR = "yellow"
ERROR_COLOR = "red"

STATUS_STYLES = {
    HostStatus.SUCCESS: SUCCESS_COLOR,
    HostStatus.FAILURE: ERROR_COLOR,
    HostStatus.TIMEOUT: WARNING_COLOR,
}
AGGREGATE_STYLES = {
    AggregateStatus.SUCCESS: SUCCESS_COLOR,
    AggregateStatus.DEGRADED: WARNING_COLOR,
    AggregateStatus.FAILED: ERROR_COLOR,
}
RUN_STATE_STYLES = {
    RunState.RUNNING: SUCCESS_COLOR,
    RunState.RESTARTING: WARNING_COLOR,
    RunState.UNKNOWN: "dim",
}


def show_header(
    title: str,
    subtitle: Optional[str] = None,
    details: Optional[dict] = None,
    console: Optional[Console] = None,
):
    """
    Display a standardized command header.

    Example:
        show_header(
            title="Deploy full web stack",
            details={"Hosts": 3, "Inventory": "inventory.yml"}
        )
    """
    if console is None:
        console = Console()

    console.print(
        f" [bold color(214)]{LOGO}[/bold color(214)] [dim]›[/dim] [bold white]{title}[/bold white]"
    )

    if subtitle:
        console.print(f" [bold color(214)]{LOGO}[/bold color(214)] [dim]›[/dim] [dim]{subtitle}[/dim]")

    if details:
        for key, value in details.items():
            console.print(
                f" [bold color(214)]{LOGO}[/bold color(214)] [dim]›[/dim] {key}: [cyan]{value}[/cyan]"
            )

    console.print()


def deployment_table(results: Iterable[DeploymentResult]) -> Table:
    table = Table(title="Deployment Results", title_justify="left", padding=(0, 1))
    table.add_column("Host", style="cyan", no_wrap=True)
    table.add_column("Status")
    table.add_column("Phases", style="dim")
    table.add_column("Details", style="dim")

    for result in results:
        style = STATUS_STYLES[result.status]
        table.add_row(
            result.host,
            f"[{style}]{result.status.value}[/{style}]",
            ", ".join(result.phases_completed) or "-",
            escape(result.message.splitlines()[0]) if result.message else "",
        )
    return table


def status_table(report: StatusReport) -> Table:
    table = Table(title="Web Stack Status", title_justify="left", padding=(0, 1))
    table.add_column("Host", style="cyan", no_wrap=True)
    table.add_column("Service")
    table.add_column("State")
    table.add_column("Healthy")
    table.add_column("Details", style="dim")

    for row in report.rows:
        style = RUN_STATE_STYLES.get(row.run_state, ERROR_COLOR)
        table.add_row(
            row.host,
            row.service_name,
            f"[{style}]{row.run_state.value}[/{style}]",
            "[green]yes[/green]" if row.healthy else "[red]no[/red]",
            escape(row.detail),
        )
    return table


def info_tables(infos: List[HostInfo]) -> List[Table]:
    tables = []
    for info in infos:
        table = Table(
            title=f"Host: {info.host} ({info.address})",
            title_justify="left",
            padding=(0, 1),
        )
        table.add_column("Service", style="cyan")
        table.add_column("State")
        table.add_column("Details", style="dim")

        if not info.reachable:
            table.add_row("-", "[dim]unknown[/dim]", escape(info.error or "unreachable"))
        for row in info.services if info.reachable else []:
            table.add_row(row.service_name, row.run_state.value, escape(row.detail))
        for line in info.listening:
            table.add_row("port", "[green]listening[/green]", escape(line))
        tables.append(table)
    return tables


def removal_table(report: RemovalReport) -> Table:
    table = Table(title="Removal Results", title_justify="left", padding=(0, 1))
    table.add_column("Host", style="cyan", no_wrap=True)
    table.add_column("Reached")
    table.add_column("Details", style="dim")

    for outcome in report.outcomes:
        style = SUCCESS_COLOR if outcome.is_done else ERROR_COLOR
        table.add_row(
            outcome.host,
            f"[{style}]{outcome.state.value}[/{style}]",
            escape(outcome.error.splitlines()[0]) if outcome.error else "",
        )
    return table


def aggregate_line(status: AggregateStatus, total: int, failed: int) -> str:
    style = AGGREGATE_STYLES[status]
    return (
        f"[{style}]{status.value.upper()}[/{style}] "
        f"[dim]{total - failed}/{total} host(s) succeeded[/dim]"
    )
