"""
Inventory Models

Immutable host records loaded once per run.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, FrozenSet, Iterator, List, Mapping, Optional


@dataclass(frozen=True)
class Host:
    """A remote host from the inventory."""

    name: str
    address: str
    user: Optional[str] = None
    credential_ref: Optional[str] = None
    roles: FrozenSet[str] = frozenset()
    variables: Mapping[str, Any] = field(
        default_factory=lambda: MappingProxyType({}), hash=False, compare=False
    )

    def has_role(self, role: str) -> bool:
        return role in self.roles

    @property
    def connection_string(self) -> str:
        """Get connection string (user@address)."""
        if self.user:
            return f"{self.user}@{self.address}"
        return self.address

    def __repr__(self) -> str:
        return f"Host(name={self.name}, address={self.address}, roles={sorted(self.roles)})"


@dataclass(frozen=True)
class Fleet:
    """The set of hosts targeted by an operation."""

    hosts: tuple = ()

    def __iter__(self) -> Iterator[Host]:
        return iter(self.hosts)

    def __len__(self) -> int:
        return len(self.hosts)

    @property
    def names(self) -> List[str]:
        return [host.name for host in self.hosts]

    def with_role(self, role: str) -> "Fleet":
        """Hosts whose role tags contain the given role."""
        return Fleet(tuple(host for host in self.hosts if host.has_role(role)))
