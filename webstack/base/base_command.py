"""
Base Command

Abstract base for all WebStack operations.
Provides common functionality and structure.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Optional

from rich.console import Console
from rich.prompt import Prompt

from webstack.constants import EXIT_INTERRUPTED, EXIT_USAGE
from webstack.core.config_loader import StackOverrides, WebStackSettings
from webstack.exceptions import WebStackError
from webstack.logger import DeployLogger
from webstack.models.inventory import Fleet
from webstack.services.ansible_transport import AnsibleTransport
from webstack.services.host_pool import HostPool
from webstack.services.secret_service import VaultSecretStore
from webstack.services.state_service import StateService
from webstack.services.transport import RemoteTransport
from webstack.ui_components import show_header


@dataclass
class CommandContext:
    """Everything a command needs, built once per router session."""

    settings: WebStackSettings
    overrides: StackOverrides = field(default_factory=StackOverrides)
    fleet: Fleet = field(default_factory=Fleet)
    secret_store: Optional[VaultSecretStore] = None
    state_service: Optional[StateService] = None
    verbose: bool = False
    console: Console = field(default_factory=Console)
    ask: Callable[..., str] = Prompt.ask
    transport_factory: Optional[Callable[[Optional[DeployLogger]], RemoteTransport]] = None

    def __post_init__(self):
        if self.state_service is None:
            self.state_service = StateService(self.settings.project_dir)

    @property
    def concurrency(self) -> Optional[int]:
        return self.overrides.concurrency or self.settings.concurrency

    @property
    def timeout(self) -> int:
        return self.overrides.timeout or self.settings.timeout

    def make_transport(self, logger: Optional[DeployLogger]) -> RemoteTransport:
        """Build the remote transport for one command."""
        if self.transport_factory is not None:
            return self.transport_factory(logger)

        secret_args = self.secret_store.ansible_args() if self.secret_store else []
        return AnsibleTransport(
            self.settings,
            secret_args,
            overrides=self.overrides.to_extra_vars(),
            logger=logger,
            verbose=self.verbose,
        )

    def make_pool(self) -> HostPool:
        return HostPool(self.concurrency)


class BaseCommand(ABC):
    """
    Abstract base command class.

    Provides:
    - Logger initialization
    - Header display
    - Error handling that maps to exit codes
    - Confirmation prompts
    """

    def __init__(self, context: CommandContext):
        self.context = context
        self.console = context.console
        self.verbose = context.verbose
        self.logger: Optional[DeployLogger] = None

    def init_logger(self, operation: str) -> DeployLogger:
        """Initialize the command's log file."""
        self.logger = DeployLogger(
            self.context.settings.log_path,
            operation,
            verbose=self.verbose,
            output=self.console,
        )
        return self.logger

    def show_header(
        self,
        title: str,
        subtitle: Optional[str] = None,
        details: Optional[dict] = None,
    ) -> None:
        """Show command header (skip in verbose mode)."""
        if not self.verbose:
            show_header(title=title, subtitle=subtitle, details=details, console=self.console)

    def print_success(self, message: str) -> None:
        self.console.print(f"[green]✓ {message}[/green]")

    def print_error(self, message: str) -> None:
        self.console.print(f"[red]✗ {message}[/red]")

    def print_warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠ {message}[/yellow]")

    def print_dim(self, message: str) -> None:
        self.console.print(f"[dim]{message}[/dim]")

    def confirm(self, question: str, default: bool = False) -> bool:
        """
        Ask for operator confirmation.

        Args:
            question: Question to ask
            default: Answer on empty input

        Returns:
            True if confirmed
        """
        default_str = "y" if default else "N"
        answer = self.context.ask(
            f"{question} [bold bright_white]\\[y/N][/bold bright_white]",
            default=default_str,
            show_default=False,
        )
        return answer.strip().lower() in ["y", "yes"]

    def handle_error(self, error: Exception, context: Optional[str] = None) -> None:
        """
        Handle error with consistent formatting.

        Args:
            error: Exception object
            context: Optional context message
        """
        if self.logger:
            self.logger.log_error(str(error), context=context)
        else:
            self.print_error(str(error))
            if context:
                self.print_dim(f"Context: {context}")

    @abstractmethod
    def execute(self) -> int:
        """
        Execute command logic.

        Must be implemented by subclasses. Returns the exit code.
        """

    def run(self) -> int:
        """Run command with error handling; always returns an exit code."""
        try:
            return self.execute()
        except WebStackError as e:
            if e.exit_code == 0:
                self.print_dim(e.message)
            else:
                self.handle_error(e)
            self._show_log_path()
            return e.exit_code
        except KeyboardInterrupt:
            self.console.print("\n[yellow]⚠️  Operation cancelled by user[/yellow]")
            self._show_log_path()
            return EXIT_INTERRUPTED
        except (FileNotFoundError, PermissionError, ValueError) as e:
            self.handle_error(e, context=type(e).__name__)
            self._show_log_path()
            return EXIT_USAGE
        finally:
            if self.logger:
                self.logger.close()

    def _show_log_path(self) -> None:
        if self.logger:
            self.console.print(f"\n[dim]Logs saved to:[/dim] {self.logger.log_path}\n")
