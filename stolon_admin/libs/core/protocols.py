"""
Protocols

Capability interfaces for the collaborators the dispatcher and the RPC
service depend on. Any backend (etcd, consul, a test double) satisfying
these can be injected.
"""

from typing import Any, Dict, List, Optional, Protocol

from .models import ClusterStatus


class ClusterProvider(Protocol):
    """Configuration and status operations on one cluster"""

    name: str

    def config(self) -> Dict[str, Any]:
        ...

    def patch_config(self, data: bytes) -> None:
        ...

    def replace_config(self, data: bytes) -> None:
        ...

    def status(self) -> ClusterStatus:
        ...


class ClusterClientProvider(Protocol):
    """Entry point to the coordination store"""

    def get_cluster(self, name: str) -> ClusterProvider:
        ...

    def clusters(self) -> List[str]:
        ...

    def close(self) -> None:
        ...


class StoreProvider(Protocol):
    """Key/value access to a coordination store"""

    def get(self, key: str) -> Optional[bytes]:
        ...

    def put(self, key: str, value: bytes) -> None:
        ...

    def list(self, prefix: str) -> Dict[str, bytes]:
        ...

    def close(self) -> None:
        ...
