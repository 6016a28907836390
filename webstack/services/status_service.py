"""Read-only fleet status and deployment info."""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from webstack.constants import DEFAULT_SERVICE_NAME, DEFAULT_TARGET_GROUP, STATUS_TIMEOUT
from webstack.exceptions import PerHostExecutionError
from webstack.logger import DeployLogger
from webstack.models.inventory import Fleet, Host
from webstack.models.results import HostInfo, RunState, StatusReport, StatusRow
from webstack.services.host_pool import HostPool
from webstack.services.transport import RemoteTransport

SECTION_MARKERS = {
    "--- unit ---": "unit",
    "--- containers ---": "containers",
    "--- ports ---": "ports",
}
HEALTHY_CHECKS = ("", "healthy")


@dataclass
class HostSnapshot:
    """Parsed query_status output for one host."""

    unit_state: str = ""
    containers: List[Dict[str, Any]] = field(default_factory=list)
    listening: List[str] = field(default_factory=list)


def parse_snapshot(output: str) -> HostSnapshot:
    """
    Split query_status output into its sections.

    The containers section is docker compose JSON: either one array or one
    object per line, depending on the compose version.
    """
    sections: Dict[str, List[str]] = {"unit": [], "containers": [], "ports": []}
    current: Optional[str] = None

    for line in output.splitlines():
        stripped = line.strip()
        if stripped in SECTION_MARKERS:
            current = SECTION_MARKERS[stripped]
            continue
        if current and stripped:
            sections[current].append(stripped)

    containers: List[Dict[str, Any]] = []
    for line in sections["containers"]:
        try:
            parsed = json.loads(line)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, list):
            containers.extend(item for item in parsed if isinstance(item, dict))
        elif isinstance(parsed, dict):
            containers.append(parsed)

    return HostSnapshot(
        unit_state=sections["unit"][0] if sections["unit"] else "",
        containers=containers,
        listening=sections["ports"],
    )


class StatusInspector:
    """
    Query service state across the fleet. Never mutates remote state.

    A host that cannot be queried is reported with run state UNKNOWN
    instead of failing the whole query.
    """

    def __init__(
        self,
        transport: RemoteTransport,
        pool: Optional[HostPool] = None,
        target_role: str = DEFAULT_TARGET_GROUP,
        service_name: str = DEFAULT_SERVICE_NAME,
        timeout: int = STATUS_TIMEOUT,
        logger: Optional[DeployLogger] = None,
    ):
        self.transport = transport
        self.pool = pool or HostPool()
        self.target_role = target_role
        self.service_name = service_name
        self.timeout = timeout
        self.logger = logger

    def query(self, fleet: Fleet) -> StatusReport:
        """
        Collect {host, service, run state, healthy} rows for every target host.

        Raises:
            OperationInterrupted: If the operator interrupted the run
        """
        infos = self.describe(fleet)
        rows: List[StatusRow] = []
        for info in infos:
            rows.extend(info.services)
        return StatusReport(rows=rows)

    def describe(self, fleet: Fleet) -> List[HostInfo]:
        """
        Collect services and listening ports for every target host.

        Raises:
            OperationInterrupted: If the operator interrupted the run
        """
        targets = list(fleet.with_role(self.target_role))
        return self.pool.run(targets, self._inspect_host, self._unreachable)

    def _inspect_host(self, host: Host) -> HostInfo:
        try:
            result = self.transport.query_status(host, self.timeout)
        except PerHostExecutionError as e:
            return self._unreachable(host, e)

        snapshot = parse_snapshot(result.stdout)
        return HostInfo(
            host=host.name,
            address=host.connection_string,
            services=self._rows(host, snapshot),
            listening=snapshot.listening,
        )

    def _rows(self, host: Host, snapshot: HostSnapshot) -> List[StatusRow]:
        unit_state = RunState.parse(snapshot.unit_state)
        service_name = str(host.variables.get("service_name") or self.service_name)
        rows = [
            StatusRow(
                host=host.name,
                service_name=service_name,
                run_state=unit_state,
                healthy=unit_state == RunState.RUNNING,
                detail=snapshot.unit_state,
            )
        ]

        for container in snapshot.containers:
            state = RunState.parse(str(container.get("State", "")))
            health = str(container.get("Health", "")).lower()
            rows.append(
                StatusRow(
                    host=host.name,
                    service_name=str(container.get("Service") or container.get("Name", "?")),
                    run_state=state,
                    healthy=state == RunState.RUNNING and health in HEALTHY_CHECKS,
                    detail=str(container.get("Status", "")),
                )
            )
        return rows

    def _unreachable(self, host: Host, error: Exception) -> HostInfo:
        if self.logger:
            self.logger.warning(f"{host.name}: could not query state ({error})")
        return HostInfo(
            host=host.name,
            address=host.connection_string,
            services=[
                StatusRow(
                    host=host.name,
                    service_name="*",
                    run_state=RunState.UNKNOWN,
                    healthy=False,
                    detail=str(error).splitlines()[0] if str(error) else "",
                )
            ],
            reachable=False,
            error=str(error),
        )
