"""Remote transport interface used by the executor, inspector and remover."""

from abc import ABC, abstractmethod

from webstack.models.inventory import Host
from webstack.models.operation import PlanRequest
from webstack.models.results import ExecutionResult, RemovalState


class RemoteTransport(ABC):
    """
    Capabilities a remote-execution backend provides.

    Implementations raise PerHostExecutionError (or HostTimeoutError /
    HostUnreachableError) for host-level failures and never touch hosts
    other than the one they are given.
    """

    @abstractmethod
    def apply_config(
        self, host: Host, step: str, plan: PlanRequest, timeout: int
    ) -> ExecutionResult:
        """Apply one phase (or the configuration-only step) to a host."""

    @abstractmethod
    def query_status(self, host: Host, timeout: int) -> ExecutionResult:
        """
        Read service state from a host without changing it.

        stdout holds three sections, each introduced by a marker line:
        ``--- unit ---`` (systemd state word), ``--- containers ---``
        (compose ps JSON) and ``--- ports ---`` (listening sockets).
        """

    @abstractmethod
    def remove_state(
        self, host: Host, state: RemovalState, timeout: int
    ) -> ExecutionResult:
        """Run one teardown state against a host."""
