"""
Headers Command

Resolve the header posture, render it per host, and apply configuration only.
"""

from typing import Dict, Optional

import inquirer
from rich.markup import escape

from webstack.base import CommandContext
from webstack.commands.deploy import DeployCommand
from webstack.constants import (
    CUSTOM_FRAMEWORK,
    CUSTOM_POWERED_BY,
    CUSTOM_SERVER_HEADER,
    HEADER_OVERRIDE_KEYS,
    RENDERED_DIR,
    STATE_DIR,
)
from webstack.core.config_loader import host_header_values
from webstack.core.header_policy import HeaderPolicyEngine
from webstack.core.header_renderer import HeaderRenderer, RenderedHeaders
from webstack.exceptions import UsageError
from webstack.models.headers import HeaderMode
from webstack.models.operation import Operation

MODE_CHOICES = [
    ("Traefik headers (security-focused, reveals Traefik)", HeaderMode.TRAEFIK),
    ("Nginx headers (reveals Nginx server)", HeaderMode.NGINX),
    ("Custom headers (stealth mode - mimic other servers)", HeaderMode.CUSTOM),
]

CUSTOM_PROMPTS = [
    ("custom_server_header", "Custom Server header", CUSTOM_SERVER_HEADER),
    ("custom_powered_by", "Custom X-Powered-By", CUSTOM_POWERED_BY),
    ("custom_framework", "Custom framework", CUSTOM_FRAMEWORK),
]


class HeadersCommand(DeployCommand):
    """
    Configure the header mode on every web server.

    Every host's policy is resolved and validated before anything remote
    runs; one invalid policy aborts the whole invocation.
    """

    def __init__(
        self,
        context: CommandContext,
        operation: Operation = Operation.CONFIGURE_HEADERS,
        engine: Optional[HeaderPolicyEngine] = None,
        renderer: Optional[HeaderRenderer] = None,
    ):
        super().__init__(context, operation)
        self.engine = engine or HeaderPolicyEngine()
        self.renderer = renderer or HeaderRenderer()

    def execute(self) -> int:
        """Execute headers command."""
        mode = self.context.overrides.header_mode
        prompted: Dict[str, str] = {}
        if mode is None:
            mode = self.select_mode()
            if mode == HeaderMode.CUSTOM:
                prompted = self.ask_custom_values()

        rendered = self.render_policies(mode, prompted)

        self.show_header(
            title="Configure header mode",
            details={"Mode": mode.value, "Hosts": len(rendered)},
        )
        logger = self.init_logger(self.operation.value)
        logger.step(f"Applying {mode.value} header configuration")
        for host_name, artifact in rendered.items():
            logger.log(f"[{host_name}] headers: {artifact.directives}")

        plan = self.build_plan()
        plan.host_variables = {
            host_name: artifact.to_extra_vars() for host_name, artifact in rendered.items()
        }
        return self.apply(plan, header_mode=mode)

    def render_policies(
        self, mode: HeaderMode, prompted: Optional[Dict[str, str]] = None
    ) -> Dict[str, RenderedHeaders]:
        """
        Resolve and render one policy per target host.

        Precedence: invocation (and prompted) values > host inventory
        variables > builtin defaults.

        Raises:
            ValidationError: If any host's policy is invalid
        """
        invocation = self.context.overrides.header_values()
        for key, value in (prompted or {}).items():
            invocation[HEADER_OVERRIDE_KEYS[key]] = value

        targets = self.context.fleet.with_role(self.context.settings.target_group)
        audit_root = self.context.settings.project_dir / STATE_DIR / RENDERED_DIR

        rendered: Dict[str, RenderedHeaders] = {}
        for host in targets:
            values = host_header_values(dict(host.variables))
            values.update(invocation)
            policy = self.engine.resolve(mode, values)
            rendered[host.name] = self.renderer.render(policy)

        for host_name, artifact in rendered.items():
            artifact.write(audit_root / host_name)

        return rendered

    def select_mode(self) -> HeaderMode:
        """Ask the operator for a header mode."""
        questions = [
            inquirer.List(
                "mode",
                message="Header configuration mode",
                choices=MODE_CHOICES,
                default=HeaderMode.CUSTOM,
            )
        ]
        answers = inquirer.prompt(questions, raise_keyboard_interrupt=True)
        if not answers:
            raise UsageError("No header mode selected")
        return answers["mode"]

    def ask_custom_values(self) -> Dict[str, str]:
        """
        Ask for custom header values.

        A blank answer keeps the host or builtin value; anything typed is
        recorded, even when it equals the builtin default.
        """
        values: Dict[str, str] = {}
        for key, label, default in CUSTOM_PROMPTS:
            answer = self.context.ask(f"Enter {label} \\[{escape(default)}]", default="", show_default=False)
            if answer and answer.strip():
                values[key] = answer.strip()
        return values

