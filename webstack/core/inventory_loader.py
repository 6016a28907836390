"""Inventory loading from Ansible YAML inventories"""

from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Set

import yaml

from webstack.exceptions import InventoryError
from webstack.models.inventory import Fleet, Host

CREDENTIAL_KEYS = ("ansible_ssh_private_key_file", "ansible_private_key_file")


class InventoryLoader:
    """
    Reads an Ansible YAML inventory into immutable Host records.

    A host's role tags are every group it belongs to, including parent
    groups. Variables merge all < parent groups < child groups < host.
    """

    def __init__(self, inventory_path: Path):
        self.inventory_path = Path(inventory_path)

    def load(self) -> Fleet:
        """
        Load every host in the inventory.

        Raises:
            InventoryError: If the file is missing, malformed or empty
        """
        if not self.inventory_path.exists():
            raise InventoryError(
                f"Inventory file not found: {self.inventory_path}",
                context="Create an Ansible YAML inventory with a 'webservers' group",
            )

        try:
            data = yaml.safe_load(self.inventory_path.read_text())
        except yaml.YAMLError as e:
            raise InventoryError(f"Invalid inventory: {self.inventory_path}", context=str(e))

        if not isinstance(data, dict) or not data:
            raise InventoryError(f"Inventory is empty: {self.inventory_path}")

        roles: Dict[str, Set[str]] = {}
        variables: Dict[str, Dict[str, Any]] = {}
        order: List[str] = []

        for group_name, group in data.items():
            self._walk(group_name, group, [], {}, roles, variables, order)

        if not order:
            raise InventoryError(f"Inventory defines no hosts: {self.inventory_path}")

        return Fleet(tuple(self._build_host(name, roles[name], variables[name]) for name in order))

    def load_targets(self, role: str) -> Fleet:
        """
        Load the hosts carrying a role tag.

        Raises:
            InventoryError: If no host carries the role
        """
        fleet = self.load().with_role(role)
        if not fleet:
            raise InventoryError(
                f"No hosts in group '{role}'",
                context=f"Inventory: {self.inventory_path}",
            )
        return fleet

    def _walk(self, group_name, group, parents, inherited, roles, variables, order) -> None:
        if group is None:
            group = {}
        if not isinstance(group, dict):
            raise InventoryError(f"Group '{group_name}' must be a mapping")

        group_roles = parents + [group_name]
        group_vars = dict(inherited)
        group_vars.update(_section(group, "vars", f"group '{group_name}'"))

        for host_name, host_vars in _section(group, "hosts", f"group '{group_name}'").items():
            host_name = str(host_name)
            if host_vars is not None and not isinstance(host_vars, dict):
                raise InventoryError(
                    f"Variables of host '{host_name}' in group '{group_name}' must be a mapping",
                    context=f"Got {type(host_vars).__name__}: {host_vars!r}",
                )
            if host_name not in roles:
                roles[host_name] = set()
                variables[host_name] = {}
                order.append(host_name)
            roles[host_name].update(group_roles)
            merged = dict(group_vars)
            merged.update(variables[host_name])
            merged.update(host_vars or {})
            variables[host_name] = merged

        for child_name, child in _section(group, "children", f"group '{group_name}'").items():
            self._walk(child_name, child, group_roles, group_vars, roles, variables, order)

    @staticmethod
    def _build_host(name: str, roles: Set[str], variables: Dict[str, Any]) -> Host:
        credential = next((variables[key] for key in CREDENTIAL_KEYS if variables.get(key)), None)
        return Host(
            name=name,
            address=str(variables.get("ansible_host", name)),
            user=variables.get("ansible_user"),
            credential_ref=credential,
            roles=frozenset(roles - {"all"}),
            variables=MappingProxyType(dict(variables)),
        )


def _section(group: Dict[str, Any], key: str, owner: str) -> Dict[str, Any]:
    """A group's vars/hosts/children mapping; absent or empty reads as {}."""
    value = group.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise InventoryError(
            f"'{key}' of {owner} must be a mapping",
            context=f"Got {type(value).__name__}: {value!r}",
        )
    return value
