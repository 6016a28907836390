"""Header rendering: validated policy -> proxy and webserver config fragments"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml
from jinja2 import Template

from webstack.exceptions import ValidationError
from webstack.models.headers import HeaderMode, HeaderPolicy

TRAEFIK_MIDDLEWARE = "header-policy"
TRAEFIK_FRAGMENT_NAME = "headers.yml"
NGINX_FRAGMENT_NAME = "headers.conf"

NGINX_TEMPLATE = Template(
    r"""# Managed by webstack - header mode: {{ mode }}
server_tokens off;
{% for directive in directives -%}
more_set_headers "{{ directive.name }}: {{ directive.value | replace('\\', '\\\\') | replace('"', '\\"') }}";
{% endfor %}"""
)

# Variable names the playbook has always used for custom mode
LEGACY_CUSTOM_VARS = {
    "Server": "custom_server_header",
    "X-Powered-By": "custom_powered_by",
    "X-Framework": "custom_framework",
}


@dataclass
class RenderedHeaders:
    """Configuration fragments materialized from one header policy."""

    mode: HeaderMode
    traefik_config: str
    nginx_config: str
    directives: list

    def to_extra_vars(self) -> Dict[str, Any]:
        """Variables the playbook templates consume."""
        extra: Dict[str, Any] = {
            "header_mode": self.mode.value,
            "header_directives": self.directives,
            "header_traefik_config": self.traefik_config,
            "header_nginx_config": self.nginx_config,
        }
        if self.mode == HeaderMode.CUSTOM:
            for directive in self.directives:
                var_name = LEGACY_CUSTOM_VARS.get(directive["name"])
                if var_name:
                    extra[var_name] = directive["value"]
        return extra

    def write(self, target_dir: Path) -> Path:
        """Write both fragments to a directory for audit."""
        target_dir.mkdir(parents=True, exist_ok=True)
        (target_dir / TRAEFIK_FRAGMENT_NAME).write_text(self.traefik_config)
        (target_dir / NGINX_FRAGMENT_NAME).write_text(self.nginx_config)
        return target_dir


class HeaderRenderer:
    """Render a validated HeaderPolicy into proxy/webserver fragments."""

    def render(self, policy: HeaderPolicy) -> RenderedHeaders:
        """
        Render the policy.

        Args:
            policy: Policy returned by HeaderPolicyEngine.resolve

        Returns:
            RenderedHeaders

        Raises:
            ValidationError: If the policy was never validated
        """
        if not policy.validated:
            raise ValidationError(
                "Refusing to render an unvalidated header policy",
                context=repr(policy),
            )

        directives = [
            {"name": directive.name, "value": directive.value}
            for directive in policy.directives
        ]

        return RenderedHeaders(
            mode=policy.mode,
            traefik_config=self._render_traefik(policy),
            nginx_config=NGINX_TEMPLATE.render(
                mode=policy.mode.value, directives=directives
            ),
            directives=directives,
        )

    def _render_traefik(self, policy: HeaderPolicy) -> str:
        config = {
            "http": {
                "middlewares": {
                    TRAEFIK_MIDDLEWARE: {
                        "headers": {
                            "customResponseHeaders": policy.as_headers(),
                        }
                    }
                }
            }
        }
        return yaml.safe_dump(config, default_flow_style=False, sort_keys=False)
