"""Pre-flight check for local tools."""

import shutil
from typing import Callable, List, Optional

from webstack.constants import OPTIONAL_TOOLS, REQUIRED_TOOLS
from webstack.exceptions import DependencyMissingError

INSTALL_HINTS = {
    "ansible-playbook": "pip install ansible",
    "ansible": "pip install ansible",
}


class DependencyChecker:
    """Verify required tools are on PATH."""

    def __init__(self, which: Callable[[str], Optional[str]] = shutil.which):
        self.which = which

    def check(self) -> List[str]:
        """
        Check required and optional tools.

        Returns:
            Warnings for missing optional tools

        Raises:
            DependencyMissingError: For the first missing required tool
        """
        for tool in REQUIRED_TOOLS:
            if not self.which(tool):
                raise DependencyMissingError(tool, INSTALL_HINTS.get(tool))

        return [
            f"{tool} not found locally. It will be installed on target servers."
            for tool in OPTIONAL_TOOLS
            if not self.which(tool)
        ]
