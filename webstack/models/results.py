"""
Result Models

Dataclass models for per-host outcomes and fleet-wide reports.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional

from webstack.constants import EXIT_DEGRADED, EXIT_FAILED, EXIT_OK


class HostStatus(Enum):
    """Outcome of one host's apply."""

    SUCCESS = "success"
    FAILURE = "failure"
    TIMEOUT = "timeout"


class AggregateStatus(Enum):
    """Summary across every host touched by one operation."""

    SUCCESS = "success"
    DEGRADED = "degraded"
    FAILED = "failed"

    @property
    def exit_code(self) -> int:
        return {
            AggregateStatus.SUCCESS: EXIT_OK,
            AggregateStatus.DEGRADED: EXIT_DEGRADED,
            AggregateStatus.FAILED: EXIT_FAILED,
        }[self]

    @classmethod
    def from_outcomes(cls, succeeded: Iterable[bool]) -> "AggregateStatus":
        """Success iff all succeed, Failed iff none do, Degraded otherwise."""
        outcomes = list(succeeded)
        if outcomes and all(outcomes):
            return cls.SUCCESS
        if any(outcomes):
            return cls.DEGRADED
        return cls.FAILED


@dataclass
class ExecutionResult:
    """Result of a command execution (subprocess, Ansible, etc.)."""

    returncode: int
    stdout: str = ""
    stderr: str = ""
    command: str = ""
    duration_seconds: float = 0.0

    @property
    def is_success(self) -> bool:
        """Check if execution succeeded."""
        return self.returncode == 0

    @property
    def is_failure(self) -> bool:
        """Check if execution failed."""
        return self.returncode != 0

    @property
    def output(self) -> str:
        """Get combined output (stdout + stderr)."""
        return f"{self.stdout}\n{self.stderr}".strip()

    def __repr__(self) -> str:
        return f"ExecutionResult(returncode={self.returncode}, command='{self.command[:50]}...')"


@dataclass
class DeploymentResult:
    """Outcome of applying a plan to one host."""

    host: str
    status: HostStatus
    message: str = ""
    phases_completed: List[str] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def is_success(self) -> bool:
        return self.status == HostStatus.SUCCESS

    def __repr__(self) -> str:
        return f"DeploymentResult(host={self.host}, status={self.status.value})"


def aggregate_status(results: Iterable[DeploymentResult]) -> AggregateStatus:
    """Aggregate per-host results into one fleet status."""
    return AggregateStatus.from_outcomes(result.is_success for result in results)


class RunState(Enum):
    """Observed state of a service on a host."""

    RUNNING = "running"
    STOPPED = "stopped"
    RESTARTING = "restarting"
    EXITED = "exited"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str) -> "RunState":
        """Map systemd and docker state words onto a run state."""
        word = (value or "").strip().lower()
        if word in ("active", "running", "up"):
            return cls.RUNNING
        if word in ("inactive", "stopped", "created", "paused", "dead", "failed"):
            return cls.STOPPED
        if word in ("restarting", "activating", "reloading"):
            return cls.RESTARTING
        if word == "exited":
            return cls.EXITED
        return cls.UNKNOWN


@dataclass
class StatusRow:
    """State of one service on one host."""

    host: str
    service_name: str
    run_state: RunState
    healthy: bool
    detail: str = ""


@dataclass
class StatusReport:
    """Fleet-wide service state."""

    rows: List[StatusRow] = field(default_factory=list)

    def for_host(self, host: str) -> List[StatusRow]:
        return [row for row in self.rows if row.host == host]

    @property
    def hosts(self) -> List[str]:
        seen: List[str] = []
        for row in self.rows:
            if row.host not in seen:
                seen.append(row.host)
        return seen

    @property
    def unreachable(self) -> List[str]:
        return [
            host
            for host in self.hosts
            if all(row.run_state == RunState.UNKNOWN for row in self.for_host(host))
        ]

    @property
    def all_healthy(self) -> bool:
        return bool(self.rows) and all(row.healthy for row in self.rows)

    def host_healthy(self, host: str) -> bool:
        rows = self.for_host(host)
        return bool(rows) and all(row.healthy for row in rows)


@dataclass
class HostInfo:
    """Deployment information for one host."""

    host: str
    address: str
    services: List[StatusRow] = field(default_factory=list)
    listening: List[str] = field(default_factory=list)
    reachable: bool = True
    error: Optional[str] = None


class RemovalState(Enum):
    """States of the teardown sequence, in order."""

    AWAIT_CONFIRMATION = "await_confirmation"
    STOP_SERVICES = "stop_services"
    DISABLE_AUTOSTART = "disable_autostart"
    DELETE_PERSISTED_STATE = "delete_persisted_state"
    DONE = "done"


REMOVAL_STEPS = [
    RemovalState.STOP_SERVICES,
    RemovalState.DISABLE_AUTOSTART,
    RemovalState.DELETE_PERSISTED_STATE,
]


@dataclass
class RemovalOutcome:
    """Where one host's teardown ended."""

    host: str
    state: RemovalState
    error: Optional[str] = None

    @property
    def is_done(self) -> bool:
        return self.state == RemovalState.DONE


@dataclass
class RemovalReport:
    """Fleet-wide teardown result."""

    state: RemovalState
    outcomes: List[RemovalOutcome] = field(default_factory=list)

    @property
    def status(self) -> AggregateStatus:
        return AggregateStatus.from_outcomes(outcome.is_done for outcome in self.outcomes)

    @property
    def removed_hosts(self) -> List[str]:
        return [outcome.host for outcome in self.outcomes if outcome.is_done]
