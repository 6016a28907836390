"""
WebStack Exception Hierarchy

Clean exception hierarchy for consistent error handling across the CLI.
Every error carries the process exit code the router reports for it.
"""

from typing import Optional

from webstack.constants import EXIT_INTERRUPTED, EXIT_OK, EXIT_USAGE


class WebStackError(Exception):
    """Base exception for all WebStack errors."""

    exit_code = EXIT_USAGE

    def __init__(self, message: str, context: Optional[str] = None):
        self.message = message
        self.context = context
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error message with optional context."""
        if self.context:
            return f"{self.message}\nContext: {self.context}"
        return self.message


class UsageError(WebStackError):
    """Raised for an unrecognized command, menu index or override option."""

    pass


class DependencyMissingError(WebStackError):
    """Raised when a required local tool is not installed."""

    def __init__(self, tool: str, hint: Optional[str] = None):
        self.tool = tool
        super().__init__(f"Required tool '{tool}' is not installed", hint)


class InventoryError(WebStackError):
    """Raised when the inventory is missing, malformed or targets no hosts."""

    pass


class SecretStoreMissingError(WebStackError):
    """Raised when the vault file or its password cannot be found."""

    pass


class ValidationError(WebStackError):
    """Raised when a header policy violates its invariants."""

    pass


class PerHostExecutionError(WebStackError):
    """Raised by a transport when a remote step fails on one host."""

    def __init__(self, host: str, step: str, detail: Optional[str] = None):
        self.host = host
        self.step = step
        super().__init__(f"{step} failed on {host}", detail)


class HostTimeoutError(PerHostExecutionError):
    """Raised by a transport when a remote step exceeds its timeout."""

    def __init__(self, host: str, step: str, timeout: int):
        self.timeout = timeout
        super().__init__(host, step, f"timed out after {timeout}s")


class HostUnreachableError(PerHostExecutionError):
    """Raised by a transport when the host cannot be contacted at all."""

    pass


class ConfirmationDeclinedError(WebStackError):
    """Raised when the operator declines a destructive operation."""

    exit_code = EXIT_OK

    def __init__(self, operation: str = "remove"):
        super().__init__(f"{operation.capitalize()} cancelled")


class OperationInterrupted(WebStackError):
    """Raised after an operator interrupt once in-flight host tasks drained."""

    exit_code = EXIT_INTERRUPTED

    def __init__(self, completed: int, cancelled: int):
        self.completed = completed
        self.cancelled = cancelled
        super().__init__(
            "Operation interrupted by operator",
            f"{completed} host(s) finished, {cancelled} host(s) never started",
        )
