"""
Header Policy Models

Dataclass models for HTTP response header directives.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class HeaderMode(Enum):
    """Header posture the stack presents to clients."""

    TRAEFIK = "traefik"
    NGINX = "nginx"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, value: str) -> "HeaderMode":
        """Parse a mode name, case-insensitive."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            choices = ", ".join(mode.value for mode in cls)
            raise ValueError(f"Unknown header mode '{value}' (choose: {choices})")


class DirectiveOrigin(Enum):
    """Where a directive's value came from."""

    BUILTIN = "builtin"
    OVERRIDE = "override"


@dataclass(frozen=True)
class HeaderDirective:
    """A single response header the stack sets."""

    name: str
    value: str
    origin: DirectiveOrigin = DirectiveOrigin.BUILTIN

    def __str__(self) -> str:
        return f"{self.name}: {self.value}"


@dataclass
class HeaderPolicy:
    """Resolved header set for one mode."""

    mode: HeaderMode
    directives: List[HeaderDirective] = field(default_factory=list)
    validated: bool = False

    @property
    def names(self) -> List[str]:
        return [directive.name for directive in self.directives]

    def get(self, name: str) -> Optional[str]:
        """Get a directive value by header name, case-insensitive."""
        for directive in self.directives:
            if directive.name.lower() == name.lower():
                return directive.value
        return None

    def as_headers(self) -> Dict[str, str]:
        """Ordered name -> value mapping."""
        return {directive.name: directive.value for directive in self.directives}

    def __repr__(self) -> str:
        return (
            f"HeaderPolicy(mode={self.mode.value}, "
            f"headers={self.names}, validated={self.validated})"
        )
