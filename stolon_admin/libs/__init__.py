"""
stolon-admin Library

Administrative control surface for stolon clusters: the stolonctl command
dispatcher and the stolonrpc JSON-RPC service.
"""

__version__ = "0.1.0"

from .core import CLIConfig, RPCServiceConfig, StolonAdminError
from .store import ClusterClient
from .ctl_app import StolonCtl, main as ctl_main
from .rpc_app import create_application, main as rpc_main

__all__ = [
    'CLIConfig',
    'RPCServiceConfig',
    'StolonAdminError',
    'ClusterClient',
    'StolonCtl',
    'ctl_main',
    'create_application',
    'rpc_main',
]
