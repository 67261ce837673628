"""
Cluster Client

Reads and writes stolon cluster data kept in the coordination store.

Layout under stolon/cluster/<name>/:
  config              cluster configuration document (JSON object)
  clusterview         current master and keeper roles (JSON)
  keepers/info/<id>   keeper addresses (JSON)
"""

import json
import logging
from typing import Any, Dict, List, Optional

from ..core.config import CLIConfig
from ..core.constants import ErrorMessages, OutputConstants, StoreConstants
from ..core.exceptions import ClientError, ClusterNotFoundError
from ..core.models import ClusterStatus, NodeStatus
from ..core.protocols import StoreProvider
from .consul import ConsulStore
from .etcd import EtcdStore

logger = logging.getLogger(__name__)

STORE_BACKENDS = {
    StoreConstants.Backend.ETCD: EtcdStore,
    StoreConstants.Backend.CONSUL: ConsulStore,
}


def merge_patch(target: Any, patch: Any) -> Any:
    """
    Apply a JSON merge patch (RFC 7386).

    Objects merge recursively, null removes a key, anything else replaces.

    Args:
        target: Current document
        patch: Patch document

    Returns:
        The patched document; target is not modified
    """
    if not isinstance(patch, dict):
        return patch
    result = dict(target) if isinstance(target, dict) else {}
    for key, value in patch.items():
        if value is None:
            result.pop(key, None)
        else:
            result[key] = merge_patch(result.get(key), value)
    return result


def _decode_document(data: bytes, what: str) -> Dict[str, Any]:
    try:
        document = json.loads(data)
    except (ValueError, UnicodeDecodeError) as e:
        raise ClientError(f"invalid {what}: {e}") from e
    if not isinstance(document, dict):
        raise ClientError(f"invalid {what}: {ErrorMessages.INVALID_CONFIG_DOCUMENT}")
    return document


def create_store(cli_config: CLIConfig) -> StoreProvider:
    """
    Build the store backend named in the configuration

    Args:
        cli_config: Resolved store configuration

    Returns:
        StoreProvider: etcd or consul store

    Raises:
        ClientError: If the backend is unknown or its TLS material is unusable
    """
    try:
        backend = StoreConstants.Backend(cli_config.backend)
    except ValueError:
        raise ClientError(ErrorMessages.UNKNOWN_BACKEND.format(
            backend=cli_config.store_backend,
            choices=", ".join(StoreConstants.Backend.names()),
        ))

    store_class = STORE_BACKENDS[backend]
    return store_class(
        cli_config.endpoint_list(),
        cert_file=cli_config.store_cert_file,
        key_file=cli_config.store_key_file,
        cacert_file=cli_config.store_cacert_file,
    )


class Cluster:
    """Configuration and status of one stolon cluster"""

    def __init__(self, name: str, store: StoreProvider):
        self.name = name
        self.store = store

    def _key(self, suffix: str) -> str:
        return f"{StoreConstants.CLUSTER_PREFIX}{self.name}/{suffix}"

    def config(self) -> Dict[str, Any]:
        """
        Fetch the current configuration document

        Returns:
            Dict: The configuration, empty if none has been stored
        """
        raw = self.store.get(self._key(StoreConstants.CONFIG_KEY))
        if not raw:
            return {}
        return _decode_document(raw, "stored configuration")

    def patch_config(self, data: bytes) -> None:
        """
        Merge a partial configuration document into the stored one

        Args:
            data: JSON merge patch

        Raises:
            ClientError: If the patch is not a JSON object or the store write fails
        """
        patch = _decode_document(data, "configuration patch")
        merged = merge_patch(self.config(), patch)
        self.store.put(self._key(StoreConstants.CONFIG_KEY), json.dumps(merged).encode())
        logger.info(f"Patched configuration of cluster {self.name}")

    def replace_config(self, data: bytes) -> None:
        """
        Overwrite the stored configuration document

        Args:
            data: Complete configuration document, stored as given

        Raises:
            ClientError: If the document is not a JSON object or the store write fails
        """
        _decode_document(data, "configuration")
        self.store.put(self._key(StoreConstants.CONFIG_KEY), data)
        logger.info(f"Replaced configuration of cluster {self.name}")

    def status(self) -> ClusterStatus:
        """
        Collect the cluster topology from the cluster view and keeper info

        Returns:
            ClusterStatus: Master and one record per known keeper
        """
        view: Dict[str, Any] = {}
        raw_view = self.store.get(self._key(StoreConstants.CLUSTERVIEW_KEY))
        if raw_view:
            view = _decode_document(raw_view, "cluster view")

        master: Optional[str] = view.get("master") or None
        roles = view.get("keepersrole") or {}

        info_prefix = self._key(StoreConstants.KEEPERS_INFO_PREFIX)
        infos: Dict[str, Dict[str, Any]] = {}
        for key, raw in self.store.list(info_prefix).items():
            keeper_id = key[len(info_prefix):]
            if keeper_id and raw:
                infos[keeper_id] = _decode_document(raw, f"keeper info {keeper_id}")

        nodes = []
        for keeper_id in sorted(set(roles) | set(infos)):
            info = infos.get(keeper_id, {})
            nodes.append(NodeStatus(
                id=keeper_id,
                role=OutputConstants.ROLE_MASTER if keeper_id == master else OutputConstants.ROLE_STANDBY,
                listen_address=str(info.get("listen_address", "")),
                port=str(info.get("port", "")),
                pg_listen_address=str(info.get("pg_listen_address", "")),
                pg_port=str(info.get("pg_port", "")),
            ))

        return ClusterStatus(cluster=self.name, master=master, nodes=nodes)


class ClusterClient:
    """Handle on the coordination store scoped to one CLIConfig"""

    def __init__(self, cli_config: CLIConfig, store: Optional[StoreProvider] = None):
        """
        Initialize the cluster client

        Args:
            cli_config: Resolved store configuration
            store: Store backend (defaults to the one named in cli_config)

        Raises:
            ClientError: If the store backend cannot be constructed
        """
        self.cli_config = cli_config
        self.store = store or create_store(cli_config)

    def get_cluster(self, name: str) -> Cluster:
        """
        Look up a cluster by name

        Raises:
            ClusterNotFoundError: If the store holds no data for the cluster
        """
        if not name or "/" in name:
            raise ClientError(f"invalid cluster name: {name!r}")
        if not self.store.list(f"{StoreConstants.CLUSTER_PREFIX}{name}/"):
            raise ClusterNotFoundError(ErrorMessages.CLUSTER_NOT_FOUND.format(name=name))
        return Cluster(name, self.store)

    def clusters(self) -> List[str]:
        """
        Enumerate known clusters

        Returns:
            List of cluster names, sorted
        """
        prefix = StoreConstants.CLUSTER_PREFIX
        names = set()
        for key in self.store.list(prefix):
            name = key[len(prefix):].split("/", 1)[0]
            if name:
                names.add(name)
        return sorted(names)

    def close(self) -> None:
        """Release the store connection"""
        self.store.close()
