"""
RPC Libraries

JSON-RPC endpoint, database operations and the service supervisor.
"""

from .codec import JSONCodec, RPCRequest
from .operations import ConnSettings, DatabaseOperation
from .server import RPCServer
from .supervisor import ServiceSupervisor

__all__ = [
    'JSONCodec',
    'RPCRequest',
    'ConnSettings',
    'DatabaseOperation',
    'RPCServer',
    'ServiceSupervisor',
]
