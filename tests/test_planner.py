"""Tests for the deployment planner."""

import pytest

from webstack.core.planner import DeploymentPlanner
from webstack.exceptions import UsageError
from webstack.models.operation import Operation, PhaseFlags


@pytest.fixture
def planner() -> DeploymentPlanner:
    return DeploymentPlanner()


class TestDeploymentPlanner:
    """Tests for DeploymentPlanner.plan."""

    def test_full_deploy_enables_everything(self, planner):
        """Should enable all four phases with no tag filter."""
        plan = planner.plan(Operation.FULL_DEPLOY)

        assert plan.phases.enabled == ["docker", "compose", "traefik", "nginx"]
        assert plan.tags == frozenset()

    def test_docker_only(self, planner):
        """Should enable docker and compose, filtered to the docker tag."""
        plan = planner.plan(Operation.DOCKER_ONLY)

        assert plan.phases == PhaseFlags(docker=True, compose=True)
        assert plan.tags == frozenset({"docker"})

    def test_web_only_skips_docker(self, planner):
        """Should enable traefik and nginx only."""
        plan = planner.plan(Operation.WEB_ONLY)

        assert plan.phases.enabled == ["traefik", "nginx"]
        assert plan.tag_list == ["compose", "nginx", "traefik"]

    def test_update_reuses_last_flags(self, planner):
        """Should reapply the last recorded phases with the config tags."""
        last = PhaseFlags(docker=True, compose=True)

        plan = planner.plan(Operation.UPDATE, last_flags=last)

        assert plan.phases == last
        assert plan.tag_list == ["compose", "config"]

    def test_update_without_history_is_config_only(self, planner):
        """Should run no install phases when nothing was recorded."""
        plan = planner.plan(Operation.UPDATE)

        assert not plan.phases.any

    def test_headers_runs_config_only(self, planner):
        """Should plan no install phases for header reconfiguration."""
        plan = planner.plan(Operation.CONFIGURE_HEADERS)

        assert plan.phases.enabled == []
        assert "config" in plan.tags

    def test_overrides_pass_through(self, planner):
        """Should copy overrides into the plan variables."""
        overrides = {"stack_dir": "/srv/web"}

        plan = planner.plan(Operation.FULL_DEPLOY, overrides)
        overrides["stack_dir"] = "/changed"

        assert plan.variables == {"stack_dir": "/srv/web"}

    @pytest.mark.parametrize("operation", [Operation.STATUS, Operation.INFO, Operation.REMOVE])
    def test_rejects_non_apply_operations(self, planner, operation):
        """Should raise UsageError for read-only and removal operations."""
        with pytest.raises(UsageError):
            planner.plan(operation)

    def test_phase_flags_map_to_playbook_variables(self):
        """Should map flags onto the install_* variables."""
        flags = PhaseFlags(traefik=True)

        assert flags.to_extra_vars() == {
            "install_docker": False,
            "install_docker_compose": False,
            "install_traefik": True,
            "install_nginx": False,
        }
