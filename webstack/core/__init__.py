"""Core planning, header policy and configuration components"""

from .config_loader import StackOverrides, WebStackSettings, host_header_values
from .header_policy import HeaderPolicyEngine, validation_errors
from .header_renderer import HeaderRenderer, RenderedHeaders
from .inventory_loader import InventoryLoader
from .planner import DeploymentPlanner

__all__ = [
    "StackOverrides",
    "WebStackSettings",
    "host_header_values",
    "HeaderPolicyEngine",
    "validation_errors",
    "HeaderRenderer",
    "RenderedHeaders",
    "InventoryLoader",
    "DeploymentPlanner",
]
