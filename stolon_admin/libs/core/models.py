"""
Data Models

Typed structures passed between the dispatcher, the store client and the
RPC supervisor.
"""

import signal
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Union

from .constants import OutputConstants, RPCConstants


# ============================================================================
# COMMANDS
# ============================================================================

@dataclass(frozen=True)
class GetConfigCommand:
    cluster_name: str
    output: str = OutputConstants.JSON


@dataclass(frozen=True)
class PatchConfigCommand:
    cluster_name: str
    file_path: str = ""
    read_stdin: bool = False


@dataclass(frozen=True)
class ReplaceConfigCommand:
    cluster_name: str
    file_path: str = ""
    read_stdin: bool = False


@dataclass(frozen=True)
class StatusCommand:
    cluster_name: str
    master_only: bool = False
    output_json: bool = False


@dataclass(frozen=True)
class ListCommand:
    pass


Command = Union[GetConfigCommand, PatchConfigCommand, ReplaceConfigCommand, StatusCommand, ListCommand]


# ============================================================================
# CLUSTER STATUS
# ============================================================================

@dataclass
class NodeStatus:
    """A keeper as seen through the cluster view"""

    id: str
    role: str
    listen_address: str = ""
    port: str = ""
    pg_listen_address: str = ""
    pg_port: str = ""

    @property
    def is_master(self) -> bool:
        return self.role == OutputConstants.ROLE_MASTER


@dataclass
class ClusterStatus:
    """Topology of one cluster"""

    cluster: str
    master: Optional[str] = None
    nodes: List[NodeStatus] = field(default_factory=list)

    def master_only(self) -> "ClusterStatus":
        """
        Restrict the status to the node holding the master role.

        Returns:
            ClusterStatus: Copy with at most one node; no nodes if there is no master
        """
        masters = [node for node in self.nodes if node.is_master][:1]
        return ClusterStatus(cluster=self.cluster, master=self.master if masters else None, nodes=masters)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ============================================================================
# SUPERVISION
# ============================================================================

@dataclass(frozen=True)
class ListenerFaultOutcome:
    error: BaseException

    exit_code = 1


@dataclass(frozen=True)
class TerminationSignalOutcome:
    signum: int

    exit_code = 0

    @property
    def name(self) -> str:
        if self.signum in RPCConstants.SIGNAL_NAMES:
            return RPCConstants.SIGNAL_NAMES[self.signum]
        return signal.Signals(self.signum).name


SupervisionOutcome = Union[ListenerFaultOutcome, TerminationSignalOutcome]
