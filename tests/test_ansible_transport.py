"""Tests for the Ansible transport command construction."""

import json
import os
import signal
import subprocess
import sys
import time
from unittest.mock import MagicMock, patch

import pytest

from webstack.core.planner import DeploymentPlanner
from webstack.exceptions import HostTimeoutError, HostUnreachableError, PerHostExecutionError
from webstack.models.operation import Operation
from webstack.models.results import RemovalState
from webstack.services.ansible_transport import AnsibleTransport, strip_ad_hoc_header
from tests.conftest import make_host

VAULT_ARGS = ["--vault-password-file", "/tmp/vault-pass"]


def _completed(returncode=0, stdout="", stderr=""):
    process = MagicMock(pid=4321, returncode=returncode)
    process.communicate.return_value = (stdout, stderr)
    return process


@pytest.fixture
def run():
    with patch("webstack.services.ansible_transport.subprocess.Popen") as mock_popen:
        mock_popen.return_value = _completed()
        yield mock_popen


def _extra_vars(cmd):
    return json.loads(cmd[cmd.index("--extra-vars") + 1])


class TestApplyConfig:
    """Tests for AnsibleTransport.apply_config."""

    def test_playbook_command(self, settings, run):
        """Should limit the playbook to one host with tags and vault args."""
        transport = AnsibleTransport(settings, VAULT_ARGS)
        plan = DeploymentPlanner().plan(Operation.DOCKER_ONLY)

        transport.apply_config(make_host("web1"), "docker", plan, timeout=30)

        cmd = run.call_args.args[0]
        assert cmd[0] == "ansible-playbook"
        assert cmd[cmd.index("--limit") + 1] == "web1"
        assert cmd[cmd.index("--tags") + 1] == "docker"
        assert cmd[-2:] == VAULT_ARGS
        run.return_value.communicate.assert_called_once_with(timeout=30)
        assert run.call_args.kwargs["start_new_session"] is True

    def test_only_current_phase_enabled(self, settings, run):
        """Should enable just the running phase's install flag."""
        transport = AnsibleTransport(settings, VAULT_ARGS)
        plan = DeploymentPlanner().plan(Operation.FULL_DEPLOY)

        transport.apply_config(make_host("web1"), "traefik", plan, timeout=30)

        cmd = run.call_args.args[0]
        extra = _extra_vars(cmd)
        assert extra["install_traefik"] is True
        assert extra["install_docker"] is False
        assert "--tags" not in cmd

    def test_variable_precedence(self, settings, run):
        """Should layer plan variables over inventory over builtin defaults."""
        transport = AnsibleTransport(settings, VAULT_ARGS)
        plan = DeploymentPlanner().plan(Operation.CONFIGURE_HEADERS, {"stack_dir": "/srv/cli"})
        plan.host_variables = {"web1": {"header_mode": "nginx"}}

        transport.apply_config(make_host("web1", service_name="edge"), "config", plan, 30)
        first = _extra_vars(run.call_args.args[0])
        transport.apply_config(make_host("web2"), "config", plan, 30)
        second = _extra_vars(run.call_args.args[0])

        assert first["stack_dir"] == "/srv/cli"
        assert "service_name" not in first
        assert first["header_mode"] == "nginx"
        assert second["service_name"] == "web-stack"
        assert "header_mode" not in second

    def test_unknown_step_rejected(self, settings, run):
        """Should refuse a step that is neither a phase nor config."""
        transport = AnsibleTransport(settings, VAULT_ARGS)
        plan = DeploymentPlanner().plan(Operation.FULL_DEPLOY)

        with pytest.raises(ValueError):
            transport.apply_config(make_host("web1"), "mysql", plan, 30)

        run.assert_not_called()


class TestErrors:
    """Tests for exit code and timeout mapping."""

    def test_non_zero_exit(self, settings, run):
        """Should raise PerHostExecutionError with the output tail."""
        run.return_value = _completed(2, stdout="TASK [docker]\nfatal: apt failed")
        transport = AnsibleTransport(settings, VAULT_ARGS)

        with pytest.raises(PerHostExecutionError) as exc_info:
            transport.apply_config(
                make_host("web1"), "docker", DeploymentPlanner().plan(Operation.DOCKER_ONLY), 30
            )

        assert exc_info.value.host == "web1"
        assert "apt failed" in str(exc_info.value)

    def test_unreachable(self, settings, run):
        """Should map exit code 4 to HostUnreachableError."""
        run.return_value = _completed(4, stdout="web1 | UNREACHABLE!")
        transport = AnsibleTransport(settings, VAULT_ARGS)

        with pytest.raises(HostUnreachableError):
            transport.query_status(make_host("web1"), 10)

    def test_timeout(self, settings, run):
        """Should map a subprocess timeout to HostTimeoutError."""
        process = _completed()
        process.communicate.side_effect = [
            subprocess.TimeoutExpired(cmd="ansible", timeout=10),
            ("", ""),
        ]
        run.return_value = process
        transport = AnsibleTransport(settings, VAULT_ARGS)

        with patch("webstack.services.ansible_transport.os.killpg") as killpg:
            with pytest.raises(HostTimeoutError) as exc_info:
                transport.query_status(make_host("web1"), 10)

        assert exc_info.value.timeout == 10
        killpg.assert_called_once_with(4321, signal.SIGKILL)
        assert process.communicate.call_count == 2

    @pytest.mark.skipif(sys.platform == "win32", reason="needs POSIX process groups")
    def test_timeout_kills_background_children(self, settings, tmp_path, monkeypatch):
        """Should stop processes forked by a timed-out playbook run."""
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir()
        marker = tmp_path / "changed-after-timeout"
        script = bin_dir / "ansible-playbook"
        script.write_text(f"#!/bin/sh\n(sleep 2; touch {marker}) &\nsleep 30\n")
        script.chmod(0o755)
        monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")
        transport = AnsibleTransport(settings, VAULT_ARGS)
        plan = DeploymentPlanner().plan(Operation.DOCKER_ONLY)

        with pytest.raises(HostTimeoutError):
            transport.apply_config(make_host("web1"), "docker", plan, timeout=1)
        time.sleep(3)

        assert not marker.exists()


class TestAdHoc:
    """Tests for status and removal commands."""

    def test_status_strips_ad_hoc_header(self, settings, run):
        """Should return only the script output."""
        run.return_value = _completed(stdout="web1 | CHANGED | rc=0 >>\n--- unit ---\nactive")
        transport = AnsibleTransport(settings, VAULT_ARGS)

        result = transport.query_status(make_host("web1"), 10)

        assert result.stdout == "--- unit ---\nactive"
        cmd = run.call_args.args[0]
        assert cmd[:2] == ["ansible", "web1"]
        assert "--become" not in cmd

    @pytest.mark.parametrize(
        "state, module, fragment",
        [
            (RemovalState.STOP_SERVICES, "shell", "docker compose down -v"),
            (RemovalState.DISABLE_AUTOSTART, "shell", "systemctl disable web-stack"),
            (RemovalState.DELETE_PERSISTED_STATE, "file", "path=/opt/web-stack state=absent"),
        ],
    )
    def test_removal_commands(self, settings, run, state, module, fragment):
        """Should run each teardown state with privilege escalation."""
        transport = AnsibleTransport(settings, VAULT_ARGS)

        transport.remove_state(make_host("web1"), state, 60)

        cmd = run.call_args.args[0]
        assert cmd[cmd.index("-m") + 1] == module
        assert fragment in cmd[cmd.index("-a") + 1]
        assert "--become" in cmd

    def test_stack_dir_override(self, settings, run):
        """Should remove the overridden stack directory."""
        transport = AnsibleTransport(settings, VAULT_ARGS, overrides={"stack_dir": "/srv/web"})

        transport.remove_state(make_host("web1"), RemovalState.DELETE_PERSISTED_STATE, 60)

        cmd = run.call_args.args[0]
        assert cmd[cmd.index("-a") + 1] == "path=/srv/web state=absent"

    def test_strip_keeps_plain_output(self):
        """Should leave output without a header alone."""
        assert strip_ad_hoc_header("--- unit ---\nactive") == "--- unit ---\nactive"
