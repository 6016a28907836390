"""
Command Router

Maps a command token or menu choice onto exactly one Operation and runs
its handler.
"""

from typing import Callable, Dict, Optional, Type

from rich.console import Console
from rich.prompt import Prompt

from webstack.base import BaseCommand, CommandContext
from webstack.commands import (
    DeployCommand,
    HeadersCommand,
    InfoCommand,
    RemoveCommand,
    StatusCommand,
)
from webstack.constants import EXIT_INTERRUPTED, EXIT_OK
from webstack.core.config_loader import StackOverrides, WebStackSettings
from webstack.core.inventory_loader import InventoryLoader
from webstack.exceptions import UsageError, WebStackError
from webstack.models.inventory import Fleet
from webstack.models.operation import OPERATION_LABELS, Operation
from webstack.services.dependency_service import DependencyChecker
from webstack.services.secret_service import VaultSecretStore

COMMAND_TOKENS: Dict[str, Operation] = {operation.value: operation for operation in Operation}
COMMAND_TOKENS["deploy"] = Operation.FULL_DEPLOY

MENU: Dict[str, Operation] = {
    "1": Operation.FULL_DEPLOY,
    "2": Operation.DOCKER_ONLY,
    "3": Operation.WEB_ONLY,
    "4": Operation.UPDATE,
    "5": Operation.STATUS,
    "6": Operation.CONFIGURE_HEADERS,
    "7": Operation.INFO,
    "8": Operation.REMOVE,
}
QUIT_CHOICE = "9"

HANDLERS: Dict[Operation, Type[BaseCommand]] = {
    Operation.FULL_DEPLOY: DeployCommand,
    Operation.DOCKER_ONLY: DeployCommand,
    Operation.WEB_ONLY: DeployCommand,
    Operation.UPDATE: DeployCommand,
    Operation.CONFIGURE_HEADERS: HeadersCommand,
    Operation.STATUS: StatusCommand,
    Operation.INFO: InfoCommand,
    Operation.REMOVE: RemoveCommand,
}

USAGE = """Usage: webstack [COMMAND] [-e KEY=VALUE ...]

Commands:
  full, deploy   Deploy full web stack (Docker + Traefik + Nginx)
  docker         Deploy Docker only
  web            Deploy Traefik + Nginx
  update         Update existing deployment
  status         Check deployment status
  headers        Configure header mode
  info           Show deployment info
  remove         Remove web stack
  help           Show this help

Run without a command for the interactive menu.

Overrides (-e KEY=VALUE):
  header_mode            traefik | nginx | custom
  custom_server_header   Server header (nginx/custom)
  custom_powered_by      X-Powered-By header (nginx/custom)
  custom_framework       X-Framework header (custom)
  custom_served_by       X-Served-By header (nginx)
  concurrency            Maximum hosts in parallel
  timeout                Per-host timeout in seconds
  stack_dir              Remote stack directory"""


def resolve_token(token: str) -> Operation:
    """
    Map a command token onto an Operation.

    Raises:
        UsageError: For an unknown token
    """
    operation = COMMAND_TOKENS.get(token.strip().lower())
    if operation is None:
        raise UsageError(f"Unknown command: {token}", context="Run 'webstack help' for usage")
    return operation


def resolve_menu(choice: str) -> Optional[Operation]:
    """
    Map a menu choice onto an Operation; None means quit.

    Raises:
        UsageError: For a choice outside 1-9
    """
    choice = choice.strip()
    if choice == QUIT_CHOICE:
        return None
    operation = MENU.get(choice)
    if operation is None:
        raise UsageError("Invalid option. Please choose 1-9.")
    return operation


class CommandRouter:
    """
    Single entry point for CLI and interactive invocations.

    Pre-flight (local tools, inventory, vault) runs once per session, before
    the first operation. Help never triggers it.
    """

    def __init__(
        self,
        settings: WebStackSettings,
        overrides: Optional[StackOverrides] = None,
        verbose: bool = False,
        console: Optional[Console] = None,
        ask: Callable[..., str] = Prompt.ask,
        checker: Optional[DependencyChecker] = None,
        secret_store: Optional[VaultSecretStore] = None,
        transport_factory: Optional[Callable] = None,
    ):
        self.settings = settings
        self.overrides = overrides or StackOverrides()
        self.verbose = verbose
        self.console = console or Console()
        self.ask = ask
        self.checker = checker or DependencyChecker()
        self.secret_store = secret_store or VaultSecretStore(settings)
        self.transport_factory = transport_factory
        self._fleet: Optional[Fleet] = None

    def print_usage(self) -> int:
        self.console.print(USAGE, markup=False, highlight=False)
        return EXIT_OK

    def preflight(self) -> Fleet:
        """
        Check local tools, load the inventory and locate the vault.

        Raises:
            DependencyMissingError: If ansible tooling is missing
            InventoryError: If the inventory is unusable or has no targets
            SecretStoreMissingError: If the vault is missing
        """
        if self._fleet is not None:
            return self._fleet

        for warning in self.checker.check():
            self.console.print(f"[yellow]⚠ {warning}[/yellow]")

        fleet = InventoryLoader(self.settings.inventory_path).load_targets(
            self.settings.target_group
        )
        self.secret_store.ensure_available()
        self._fleet = fleet
        return fleet

    def command_for(self, operation: Operation) -> BaseCommand:
        """Build the handler for an operation."""
        context = CommandContext(
            settings=self.settings,
            overrides=self.overrides,
            fleet=self.preflight(),
            secret_store=self.secret_store,
            verbose=self.verbose,
            console=self.console,
            ask=self.ask,
            transport_factory=self.transport_factory,
        )
        handler = HANDLERS[operation]
        if issubclass(handler, DeployCommand):
            return handler(context, operation)
        return handler(context)

    def dispatch(self, operation: Operation) -> int:
        """Run one operation; returns its exit code."""
        try:
            command = self.command_for(operation)
        except WebStackError as e:
            self._print_error(e)
            return e.exit_code
        return command.run()

    def run_command(self, token: str) -> int:
        """Run a single command token and return the process exit code."""
        if token.strip().lower() == "help":
            return self.print_usage()

        try:
            operation = resolve_token(token)
        except UsageError as e:
            self._print_error(e)
            return e.exit_code

        try:
            return self.dispatch(operation)
        finally:
            self.secret_store.cleanup()

    def run_interactive(self) -> int:
        """Show the menu until the operator quits."""
        try:
            while True:
                self.show_menu()
                choice = self.ask("Enter your choice (1-9)")
                try:
                    operation = resolve_menu(choice)
                except UsageError as e:
                    self.console.print(f"[red]✗ {e.message}[/red]")
                    continue

                if operation is None:
                    self.console.print("[green]Goodbye![/green]")
                    return EXIT_OK

                self.dispatch(operation)
                self.ask("Press Enter to continue", default="", show_default=False)
        except KeyboardInterrupt:
            self.console.print("\n[yellow]⚠️  Operation cancelled by user[/yellow]")
            return EXIT_INTERRUPTED
        finally:
            self.secret_store.cleanup()

    def show_menu(self) -> None:
        self.console.print()
        self.console.print("[bold cyan]Web Stack Deployment[/bold cyan]")
        self.console.print(f"[dim]Inventory:[/dim] {self.settings.inventory_path}")
        self.console.print()
        for key, operation in MENU.items():
            self.console.print(f"  [cyan]{key}[/cyan]. {OPERATION_LABELS[operation]}")
        self.console.print(f"  [cyan]{QUIT_CHOICE}[/cyan]. Exit")
        self.console.print()

    def _print_error(self, error: WebStackError) -> None:
        self.console.print(f"\n[bold red]✗ Error:[/bold red] {error.message}")
        if error.context:
            self.console.print(f"[dim]{error.context}[/dim]")
        self.console.print()
