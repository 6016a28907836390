"""
WebStack Services Layer

Remote execution, fleet inspection, teardown and local state.
"""

from .ansible_transport import AnsibleTransport
from .dependency_service import DependencyChecker
from .host_pool import HostPool
from .remote_executor import RemoteExecutor
from .removal_service import RemovalCoordinator
from .secret_service import VaultSecretStore
from .state_service import StateService
from .status_service import StatusInspector
from .transport import RemoteTransport

__all__ = [
    "AnsibleTransport",
    "DependencyChecker",
    "HostPool",
    "RemoteExecutor",
    "RemovalCoordinator",
    "VaultSecretStore",
    "StateService",
    "StatusInspector",
    "RemoteTransport",
]
