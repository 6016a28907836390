"""
Ansible Transport

Drives ansible-playbook and ad hoc ansible commands, one host at a time.
"""

import json
import os
import re
import shlex
import signal
import subprocess
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from webstack.constants import (
    ANSIBLE_BECOME_METHOD,
    COMPOSE_FILE_NAME,
    CONFIG_STEP,
    INFO_PORTS,
    PHASE_ORDER,
)
from webstack.core.config_loader import WebStackSettings
from webstack.exceptions import (
    HostTimeoutError,
    HostUnreachableError,
    PerHostExecutionError,
)
from webstack.logger import DeployLogger
from webstack.models.inventory import Host
from webstack.models.operation import PhaseFlags, PlanRequest
from webstack.models.results import ExecutionResult, RemovalState
from webstack.services.transport import RemoteTransport

# ansible exits 4 when a host is unreachable
ANSIBLE_UNREACHABLE_RC = 4
AD_HOC_HEADER = re.compile(r"^\S+ \| [A-Z!]+ \| rc=\d+ >>$")
OUTPUT_TAIL_LINES = 15


class AnsibleTransport(RemoteTransport):
    """
    Run Ansible against single hosts.

    Responsibilities:
    - Build playbook and ad hoc commands (inventory, limit, vault, tags)
    - Layer builtin defaults under inventory and invocation variables
    - Convert exit codes and timeouts into host-scoped errors
    - Log every command and its output
    """

    def __init__(
        self,
        settings: WebStackSettings,
        secret_args: List[str],
        overrides: Optional[Dict[str, Any]] = None,
        logger: Optional[DeployLogger] = None,
        verbose: bool = False,
    ):
        """
        Initialize Ansible transport.

        Args:
            settings: Project settings (inventory, playbook, remote layout)
            secret_args: Vault arguments from the secret store
            overrides: Invocation-time variables (highest precedence)
            logger: DeployLogger instance for logging
            verbose: Whether Ansible runs with -v
        """
        self.settings = settings
        self.secret_args = list(secret_args)
        self.overrides = dict(overrides or {})
        self.logger = logger
        self.verbose = verbose

    def apply_config(
        self, host: Host, step: str, plan: PlanRequest, timeout: int
    ) -> ExecutionResult:
        """Run the playbook for one phase against one host."""
        cmd = [
            "ansible-playbook",
            "-i",
            str(self.settings.inventory_path),
            str(self.settings.playbook_path),
            "--limit",
            host.name,
            "--extra-vars",
            json.dumps(self._extra_vars(host, step, plan)),
        ]
        if plan.tags:
            cmd.extend(["--tags", ",".join(plan.tag_list)])
        if self.verbose:
            cmd.append("-v")
        cmd.extend(self.secret_args)

        return self._run(host, step, cmd, timeout)

    def query_status(self, host: Host, timeout: int) -> ExecutionResult:
        """Read unit, container and port state from one host."""
        stack_dir = self._stack_dir(host)
        service = self._service_name(host)
        ports = "|".join(str(port) for port in INFO_PORTS)
        script = " ; ".join(
            [
                "echo '--- unit ---'",
                f"(systemctl is-active {shlex.quote(service)} || true)",
                "echo '--- containers ---'",
                f"(docker compose -f {shlex.quote(f'{stack_dir}/{COMPOSE_FILE_NAME}')} "
                "ps --all --format json 2>/dev/null || true)",
                "echo '--- ports ---'",
                f"(ss -tlnp | grep -E ':({ports})\\b' || true)",
            ]
        )
        result = self._run(host, "status", self._ad_hoc(host, "shell", script), timeout)
        result.stdout = strip_ad_hoc_header(result.stdout)
        return result

    def remove_state(
        self, host: Host, state: RemovalState, timeout: int
    ) -> ExecutionResult:
        """Run one teardown state against one host."""
        stack_dir = self._stack_dir(host)
        service = self._service_name(host)

        if state == RemovalState.STOP_SERVICES:
            cmd = self._ad_hoc(
                host,
                "shell",
                f"cd {shlex.quote(stack_dir)} && docker compose down -v "
                f"&& systemctl stop {shlex.quote(service)}",
                become=True,
            )
        elif state == RemovalState.DISABLE_AUTOSTART:
            cmd = self._ad_hoc(
                host, "shell", f"systemctl disable {shlex.quote(service)}", become=True
            )
        elif state == RemovalState.DELETE_PERSISTED_STATE:
            cmd = self._ad_hoc(
                host, "file", f"path={stack_dir} state=absent", become=True
            )
        else:
            raise ValueError(f"{state.value} is not a teardown step")

        return self._run(host, state.value, cmd, timeout)

    def _ad_hoc(self, host: Host, module: str, args: str, become: bool = False) -> List[str]:
        cmd = [
            "ansible",
            host.name,
            "-i",
            str(self.settings.inventory_path),
            "-m",
            module,
            "-a",
            args,
        ]
        if become:
            cmd.extend(["--become", "--become-method", ANSIBLE_BECOME_METHOD])
        cmd.extend(self.secret_args)
        return cmd

    def _extra_vars(self, host: Host, step: str, plan: PlanRequest) -> Dict[str, Any]:
        """Builtin defaults < inventory variables < plan variables."""
        defaults = {
            "stack_dir": self.settings.stack_dir,
            "service_name": self.settings.service_name,
        }
        extra = {key: value for key, value in defaults.items() if key not in host.variables}

        if step in PHASE_ORDER:
            extra.update(plan.phases.only(step).to_extra_vars())
        elif step == CONFIG_STEP:
            extra.update(PhaseFlags().to_extra_vars())
        else:
            raise ValueError(f"Unknown apply step '{step}'")

        extra.update(plan.variables_for(host.name))
        return extra

    def _stack_dir(self, host: Host) -> str:
        return str(
            self.overrides.get("stack_dir")
            or host.variables.get("stack_dir")
            or self.settings.stack_dir
        )

    def _service_name(self, host: Host) -> str:
        return str(host.variables.get("service_name") or self.settings.service_name)

    def _build_environment(self, host: Host) -> dict:
        env = os.environ.copy()
        env.update(
            {
                "PYTHONUNBUFFERED": "1",
                "ANSIBLE_FORCE_COLOR": "false",
                "ANSIBLE_RETRY_FILES_ENABLED": "false",
                "ANSIBLE_NOCOLOR": "true",
            }
        )
        if self.logger and self.logger.log_path:
            log_path: Path = self.logger.log_path
            env["ANSIBLE_LOG_PATH"] = str(
                log_path.parent / f"{log_path.stem}_{host.name}_ansible.log"
            )
        return env

    def _run(self, host: Host, step: str, cmd: List[str], timeout: int) -> ExecutionResult:
        """
        Run an Ansible command for one host.

        The child runs in its own session so an operator Ctrl-C reaches
        only this process and in-flight hosts finish their step. On timeout
        the whole session is killed, forks and ssh children included.

        Raises:
            HostTimeoutError: If the command exceeds its timeout
            HostUnreachableError: If Ansible cannot reach the host
            PerHostExecutionError: On any other non-zero exit
        """
        command_str = shlex.join(cmd)
        if self.logger:
            self.logger.log_command(f"[{host.name}] {command_str}")

        start_time = time.time()
        try:
            process = subprocess.Popen(
                cmd,
                cwd=str(self.settings.project_dir),
                env=self._build_environment(host),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                start_new_session=True,
            )
        except OSError as e:
            raise PerHostExecutionError(host.name, step, str(e))

        try:
            stdout, stderr = process.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            _kill_session(process)
            if self.logger:
                self.logger.log(f"[{host.name}] {step}: killed after {timeout}s", "WARNING")
            raise HostTimeoutError(host.name, step, timeout)

        result = ExecutionResult(
            returncode=process.returncode,
            stdout=stdout or "",
            stderr=stderr or "",
            command=command_str,
            duration_seconds=time.time() - start_time,
        )

        if self.logger:
            self.logger.log_output(result.stdout, host.name)
            self.logger.log_output(result.stderr, f"{host.name}:stderr")

        if result.returncode == ANSIBLE_UNREACHABLE_RC:
            raise HostUnreachableError(host.name, step, _tail(result.output))
        if result.is_failure:
            raise PerHostExecutionError(
                host.name, step, f"exit code {result.returncode}: {_tail(result.output)}"
            )
        return result


def strip_ad_hoc_header(output: str) -> str:
    """Drop the 'host | CHANGED | rc=0 >>' line ansible prints first."""
    lines = output.splitlines()
    if lines and AD_HOC_HEADER.match(lines[0].strip()):
        lines = lines[1:]
    return "\n".join(lines)


def _tail(output: str) -> str:
    lines = [line for line in output.splitlines() if line.strip()]
    return "\n".join(lines[-OUTPUT_TAIL_LINES:])


def _kill_session(process: subprocess.Popen) -> None:
    """Kill every process in the child's session and reap the leader."""
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    process.communicate()
