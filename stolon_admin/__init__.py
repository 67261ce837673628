"""
stolon-admin

Command-line and JSON-RPC administration for stolon PostgreSQL clusters.
"""

__version__ = "0.1.0"

from .libs import StolonCtl, ClusterClient, ctl_main, rpc_main

__all__ = [
    'StolonCtl',
    'ClusterClient',
    'ctl_main',
    'rpc_main',
]
