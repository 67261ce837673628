"""
Store Libraries

Cluster data access over etcd or consul.
"""

from .client import ClusterClient, Cluster, create_store, merge_patch
from .consul import ConsulStore
from .etcd import EtcdStore

__all__ = [
    'ClusterClient',
    'Cluster',
    'create_store',
    'merge_patch',
    'ConsulStore',
    'EtcdStore',
]
