"""Tests for Ansible YAML inventory loading."""

import pytest
import yaml

from webstack.core.inventory_loader import InventoryLoader
from webstack.exceptions import InventoryError


def _host(fleet, name):
    return next(host for host in fleet if host.name == name)


class TestInventoryLoader:
    """Tests for InventoryLoader."""

    def test_loads_hosts_with_roles_and_variables(self, project_dir):
        """Should build hosts with group roles and merged variables."""
        fleet = InventoryLoader(project_dir / "inventory.yml").load()

        assert fleet.names == ["web1", "web2", "db1"]
        web2 = _host(fleet, "web2")
        assert web2.address == "10.0.0.12"
        assert web2.user == "deploy"
        assert web2.roles == frozenset({"webservers"})
        assert web2.variables["custom_server_header"] == "Apache/2.4.58"

    def test_load_targets_filters_by_role(self, project_dir):
        """Should return only hosts in the target group."""
        fleet = InventoryLoader(project_dir / "inventory.yml").load_targets("webservers")

        assert fleet.names == ["web1", "web2"]

    def test_host_variables_are_read_only(self, project_dir):
        """Should expose variables as an immutable mapping."""
        host = _host(InventoryLoader(project_dir / "inventory.yml").load(), "web1")

        with pytest.raises(TypeError):
            host.variables["ansible_host"] = "10.9.9.9"

    def test_nested_groups_inherit_roles(self, tmp_path):
        """Should tag hosts with parent and child groups."""
        path = tmp_path / "inventory.yml"
        path.write_text(
            yaml.safe_dump(
                {
                    "production": {
                        "vars": {"stack_dir": "/srv/prod"},
                        "children": {
                            "webservers": {
                                "hosts": {"edge1": {"ansible_ssh_private_key_file": "~/.ssh/edge"}}
                            }
                        },
                    }
                }
            )
        )

        host = _host(InventoryLoader(path).load(), "edge1")

        assert host.roles == frozenset({"production", "webservers"})
        assert host.variables["stack_dir"] == "/srv/prod"
        assert host.credential_ref == "~/.ssh/edge"
        assert host.address == "edge1"

    def test_missing_inventory(self, tmp_path):
        """Should raise InventoryError for a missing file."""
        with pytest.raises(InventoryError):
            InventoryLoader(tmp_path / "missing.yml").load()

    def test_malformed_inventory(self, tmp_path):
        """Should raise InventoryError for invalid YAML."""
        path = tmp_path / "inventory.yml"
        path.write_text("all: [unclosed\n")

        with pytest.raises(InventoryError):
            InventoryLoader(path).load()

    def test_empty_target_group(self, project_dir):
        """Should raise InventoryError when no host carries the role."""
        with pytest.raises(InventoryError) as exc_info:
            InventoryLoader(project_dir / "inventory.yml").load_targets("loadbalancers")

        assert "loadbalancers" in exc_info.value.message

    @pytest.mark.parametrize(
        "inventory, named",
        [
            ({"webservers": {"hosts": ["web1", "web2"]}}, "webservers"),
            ({"webservers": {"hosts": {"web1": "10.0.0.1"}}}, "web1"),
            ({"webservers": {"vars": ["ansible_user=deploy"], "hosts": {"web1": None}}}, "webservers"),
            ({"all": {"children": ["webservers"]}}, "all"),
        ],
    )
    def test_non_mapping_sections_rejected(self, tmp_path, inventory, named):
        """Should raise InventoryError naming the group or host with a list or scalar section."""
        path = tmp_path / "inventory.yml"
        path.write_text(yaml.safe_dump(inventory))

        with pytest.raises(InventoryError) as exc_info:
            InventoryLoader(path).load()

        assert f"'{named}'" in exc_info.value.message

    def test_host_without_variables(self, tmp_path):
        """Should accept a host entry with no variables."""
        path = tmp_path / "inventory.yml"
        path.write_text("webservers:\n  hosts:\n    web1:\n")

        fleet = InventoryLoader(path).load()

        assert fleet.names == ["web1"]
        assert _host(fleet, "web1").address == "web1"
