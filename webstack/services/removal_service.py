"""
Removal Coordinator

Tears the stack down through an explicit, confirmable sequence:
AwaitConfirmation -> StopServices -> DisableAutostart -> DeletePersistedState -> Done
"""

from typing import Callable, Dict, List, Optional

from webstack.constants import DEFAULT_TARGET_GROUP, DEFAULT_TIMEOUT
from webstack.exceptions import ConfirmationDeclinedError, PerHostExecutionError
from webstack.logger import DeployLogger
from webstack.models.inventory import Fleet, Host
from webstack.models.results import (
    REMOVAL_STEPS,
    RemovalOutcome,
    RemovalReport,
    RemovalState,
)
from webstack.services.host_pool import HostPool
from webstack.services.transport import RemoteTransport


class RemovalCoordinator:
    """
    Drive the teardown state machine across the fleet.

    The whole fleet finishes one state before any host starts the next.
    A host that fails stays at the state it failed in; earlier states are
    neither retried nor rolled back.
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
        self.state = RemovalState.AWAIT_CONFIRMATION

    def remove(self, fleet: Fleet, confirm: Callable[[], bool]) -> RemovalReport:
        """
        Remove the stack from every target host.

        Args:
            fleet: Hosts loaded from the inventory
            confirm: Asks the operator; nothing remote runs unless it returns True

        Returns:
            RemovalReport with the state each host reached

        Raises:
            ConfirmationDeclinedError: If the operator declined
            OperationInterrupted: If the operator interrupted the run
        """
        self.state = RemovalState.AWAIT_CONFIRMATION
        if not confirm():
            raise ConfirmationDeclinedError("removal")

        targets = list(fleet.with_role(self.target_role))
        halted: Dict[str, RemovalOutcome] = {}
        progressing: List[Host] = list(targets)

        for state in REMOVAL_STEPS:
            if not progressing:
                break
            self.state = state
            if self.logger:
                self.logger.step(state.value.replace("_", " ").capitalize())

            errors = self.pool.run(
                progressing,
                lambda host, state=state: self._run_state(host, state),
                lambda host, error: f"{type(error).__name__}: {error}",
            )

            for host, error in zip(progressing, errors):
                if error:
                    halted[host.name] = RemovalOutcome(host.name, state, error)
                    if self.logger:
                        self.logger.failure(f"{host.name}: halted at {state.value}")
                elif self.logger:
                    self.logger.success(f"{host.name}: {state.value}")

            progressing = [host for host in progressing if host.name not in halted]

        self.state = RemovalState.DONE
        outcomes = [
            halted.get(host.name, RemovalOutcome(host.name, RemovalState.DONE))
            for host in targets
        ]
        return RemovalReport(state=self.state, outcomes=outcomes)

    def _run_state(self, host: Host, state: RemovalState) -> Optional[str]:
        """Run one state on one host; return an error message or None."""
        try:
            self.transport.remove_state(host, state, self.timeout)
        except PerHostExecutionError as e:
            if self.logger:
                self.logger.log(e.format_message(), "ERROR")
            return e.format_message()
        return None
