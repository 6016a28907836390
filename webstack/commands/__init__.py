"""WebStack operation handlers"""

from .deploy import DeployCommand
from .headers import HeadersCommand
from .info import InfoCommand
from .remove import RemoveCommand
from .status import StatusCommand

__all__ = [
    "DeployCommand",
    "HeadersCommand",
    "InfoCommand",
    "RemoveCommand",
    "StatusCommand",
]
