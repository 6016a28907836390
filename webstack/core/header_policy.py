"""
Header Policy Engine

Resolves a header mode plus overrides into a validated, ordered list of
response header directives. Pure: no I/O, same inputs give the same policy.
"""

from typing import Dict, List, Mapping, Optional, Tuple

from webstack.constants import (
    CUSTOM_FRAMEWORK,
    CUSTOM_POWERED_BY,
    CUSTOM_SERVER_HEADER,
    HSTS_VALUE,
    NGINX_POWERED_BY,
    NGINX_SERVED_BY,
    NGINX_SERVER_HEADER,
    TRAEFIK_SERVER_HEADER,
)
from webstack.exceptions import ValidationError
from webstack.models.headers import (
    DirectiveOrigin,
    HeaderDirective,
    HeaderMode,
    HeaderPolicy,
)

TRAEFIK_HEADERS: List[Tuple[str, str]] = [
    ("Server", TRAEFIK_SERVER_HEADER),
    ("X-Frame-Options", "DENY"),
    ("X-Content-Type-Options", "nosniff"),
    ("X-XSS-Protection", "1; mode=block"),
    ("Strict-Transport-Security", HSTS_VALUE),
]

NGINX_HEADERS: List[Tuple[str, str]] = [
    ("Server", NGINX_SERVER_HEADER),
    ("X-Powered-By", NGINX_POWERED_BY),
    ("X-Served-By", NGINX_SERVED_BY),
]

CUSTOM_HEADERS: List[Tuple[str, str]] = [
    ("Server", CUSTOM_SERVER_HEADER),
    ("X-Powered-By", CUSTOM_POWERED_BY),
    ("X-Framework", CUSTOM_FRAMEWORK),
]

# Modes whose builtin values the operator may replace
MODE_DEFAULTS = {
    HeaderMode.TRAEFIK: (TRAEFIK_HEADERS, False),
    HeaderMode.NGINX: (NGINX_HEADERS, True),
    HeaderMode.CUSTOM: (CUSTOM_HEADERS, True),
}

FORBIDDEN_CHARS = ("\r", "\n")


class HeaderPolicyEngine:
    """Resolve and validate header policies."""

    def resolve(
        self, mode: HeaderMode, overrides: Optional[Mapping[str, str]] = None
    ) -> HeaderPolicy:
        """
        Resolve a header policy for a mode.

        Overrides are keyed by header name (case-insensitive). Traefik mode
        ignores them; Nginx and Custom modes apply them only to their own
        header names, never adding new ones.

        Args:
            mode: Header mode
            overrides: Header name -> value

        Returns:
            Validated HeaderPolicy

        Raises:
            ValidationError: If the resolved directives break an invariant
        """
        defaults, overridable = MODE_DEFAULTS[mode]
        lookup = _normalize(overrides) if overridable else {}

        directives = []
        for name, default in defaults:
            if name.lower() in lookup:
                directives.append(
                    HeaderDirective(name, lookup[name.lower()], DirectiveOrigin.OVERRIDE)
                )
            else:
                directives.append(HeaderDirective(name, default))

        policy = HeaderPolicy(mode=mode, directives=directives)
        return self.validate(policy)

    def validate(self, policy: HeaderPolicy) -> HeaderPolicy:
        """
        Check policy invariants and mark it validated.

        Raises:
            ValidationError: On empty values, CR/LF in values, duplicate
                names, or a Server directive count other than one
        """
        errors = validation_errors(policy.directives)
        if errors:
            raise ValidationError(
                f"Invalid {policy.mode.value} header policy",
                context="; ".join(errors),
            )
        policy.validated = True
        return policy


def validation_errors(directives: List[HeaderDirective]) -> List[str]:
    """Collect every invariant violation in a directive list."""
    errors = []
    seen: Dict[str, int] = {}

    for directive in directives:
        key = directive.name.lower()
        seen[key] = seen.get(key, 0) + 1

        if not directive.name.strip():
            errors.append("header with empty name")
        if not directive.value or not directive.value.strip():
            errors.append(f"{directive.name}: empty value")
        elif any(char in directive.value for char in FORBIDDEN_CHARS):
            errors.append(f"{directive.name}: value contains CR or LF")

    for key, count in seen.items():
        if count > 1:
            errors.append(f"duplicate header '{key}'")

    if seen.get("server", 0) != 1:
        errors.append("policy must define exactly one Server header")

    return errors


def _normalize(overrides: Optional[Mapping[str, str]]) -> Dict[str, str]:
    if not overrides:
        return {}
    return {str(name).lower(): value for name, value in overrides.items()}
