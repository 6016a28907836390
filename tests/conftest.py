"""
Shared fixtures.

Remote calls go through FakeTransport; nothing here needs Ansible,
SSH or network access.
"""

import io
import threading
import time
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Optional, Set, Tuple

import pytest
import yaml
from rich.console import Console

from webstack.base import CommandContext
from webstack.core.config_loader import StackOverrides, WebStackSettings
from webstack.exceptions import (
    HostTimeoutError,
    HostUnreachableError,
    PerHostExecutionError,
)
from webstack.models.inventory import Fleet, Host
from webstack.models.operation import PlanRequest
from webstack.models.results import ExecutionResult, RemovalState
from webstack.services.transport import RemoteTransport

HEALTHY_STATUS = """--- unit ---
active
--- containers ---
[{"Service": "traefik", "State": "running", "Health": "", "Status": "Up 2 hours"}, {"Service": "nginx", "State": "running", "Health": "healthy", "Status": "Up 2 hours"}]
--- ports ---
LISTEN 0 4096 0.0.0.0:80 0.0.0.0:*
LISTEN 0 4096 0.0.0.0:443 0.0.0.0:*
"""


# =============================================================================
# Fake transport
# =============================================================================


class FakeTransport(RemoteTransport):
    """
    In-memory transport recording every call.

    Args:
        fail: (host, step) pairs that raise PerHostExecutionError
        timeout: (host, step) pairs that raise HostTimeoutError
        unreachable: Hosts that raise HostUnreachableError on every call
        status_output: Host -> query_status stdout
        delay: (host, step) -> seconds to sleep before the call completes

    `events` lists ("ok" | "fail", host, step) in completion order.
    """

    def __init__(
        self,
        fail: Optional[Set[Tuple[str, str]]] = None,
        timeout: Optional[Set[Tuple[str, str]]] = None,
        unreachable: Optional[Set[str]] = None,
        status_output: Optional[Dict[str, str]] = None,
        delay: Optional[Dict[Tuple[str, str], float]] = None,
    ):
        self.fail = fail or set()
        self.timeout = timeout or set()
        self.unreachable = unreachable or set()
        self.status_output = status_output or {}
        self.delay = delay or {}
        self.events: List[Tuple[str, str, str]] = []
        self.calls: List[Tuple[str, str, str]] = []
        self.plans: List[PlanRequest] = []
        self._lock = threading.Lock()

    def _record(self, kind: str, host: Host, step: str) -> None:
        with self._lock:
            self.calls.append((kind, host.name, step))
        if (host.name, step) in self.delay:
            time.sleep(self.delay[(host.name, step)])
        try:
            self._raise_for(host, step)
        except Exception:
            self._event("fail", host, step)
            raise
        self._event("ok", host, step)

    def _raise_for(self, host: Host, step: str) -> None:
        if host.name in self.unreachable:
            raise HostUnreachableError(host.name, step, "UNREACHABLE!")
        if (host.name, step) in self.timeout:
            raise HostTimeoutError(host.name, step, 5)
        if (host.name, step) in self.fail:
            raise PerHostExecutionError(host.name, step, "exit code 2: boom")

    def _event(self, outcome: str, host: Host, step: str) -> None:
        with self._lock:
            self.events.append((outcome, host.name, step))

    def apply_config(self, host, step, plan, timeout):
        with self._lock:
            self.plans.append(plan)
        self._record("apply", host, step)
        return ExecutionResult(returncode=0, command=f"apply {step}")

    def query_status(self, host, timeout):
        self._record("status", host, "status")
        return ExecutionResult(returncode=0, stdout=self.status_output.get(host.name, HEALTHY_STATUS))

    def remove_state(self, host, state: RemovalState, timeout):
        self._record("remove", host, state.value)
        return ExecutionResult(returncode=0, command=f"remove {state.value}")

    def calls_for(self, host_name: str) -> List[str]:
        return [step for _, name, step in self.calls if name == host_name]

    def calls_of(self, kind: str) -> List[Tuple[str, str]]:
        return [(name, step) for call_kind, name, step in self.calls if call_kind == kind]


# =============================================================================
# Fleet fixtures
# =============================================================================


def make_host(name: str, roles=("webservers",), **variables) -> Host:
    return Host(
        name=name,
        address=f"10.0.0.{abs(hash(name)) % 200 + 1}",
        user="deploy",
        roles=frozenset(roles),
        variables=MappingProxyType(dict(variables)),
    )


@pytest.fixture
def fleet() -> Fleet:
    """Three web servers and one database host outside the target group."""
    return Fleet(
        (
            make_host("web1"),
            make_host("web2"),
            make_host("web3"),
            make_host("db1", roles=("databases",)),
        )
    )


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


# =============================================================================
# Project fixtures
# =============================================================================


INVENTORY = {
    "all": {
        "children": {
            "webservers": {
                "hosts": {
                    "web1": {"ansible_host": "10.0.0.11"},
                    "web2": {"ansible_host": "10.0.0.12", "custom_server_header": "Apache/2.4.58"},
                },
                "vars": {"ansible_user": "deploy"},
            },
            "databases": {"hosts": {"db1": {"ansible_host": "10.0.0.21"}}},
        }
    }
}


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Project directory with an inventory, a playbook and a vault."""
    (tmp_path / "inventory.yml").write_text(yaml.safe_dump(INVENTORY, sort_keys=False))
    (tmp_path / "web-stack.yml").write_text("- hosts: webservers\n  tasks: []\n")
    vault = tmp_path / "group_vars" / "all" / "vault.yml"
    vault.parent.mkdir(parents=True)
    vault.write_text("$ANSIBLE_VAULT;1.1;AES256\n6162630a\n")
    password = tmp_path / ".vault_pass"
    password.write_text("secret\n")
    (tmp_path / "webstack.yml").write_text(yaml.safe_dump({"vault_password_file": ".vault_pass"}))
    return tmp_path


@pytest.fixture
def settings(project_dir: Path) -> WebStackSettings:
    return WebStackSettings.load(project_dir)


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def console(output: io.StringIO) -> Console:
    return Console(file=output, width=160, color_system=None)


@pytest.fixture
def make_context(settings, fleet, transport, console):
    """Factory for CommandContext wired to the fake transport."""

    def factory(answers=None, overrides=None, **kwargs) -> CommandContext:
        replies = list(answers or [])

        def ask(prompt, **_kwargs):
            return replies.pop(0) if replies else _kwargs.get("default", "")

        return CommandContext(
            settings=settings,
            overrides=overrides or StackOverrides(),
            fleet=kwargs.pop("fleet", fleet),
            console=console,
            ask=ask,
            transport_factory=lambda logger: transport,
            **kwargs,
        )

    return factory
