"""
Exceptions

Error hierarchy shared by stolonctl and stolonrpc.
"""


class StolonAdminError(Exception):
    """Base class for all stolon-admin errors"""


class ParseError(StolonAdminError):
    """Malformed command-line invocation"""

    def __init__(self, message: str, usage: str = ""):
        super().__init__(message)
        self.usage = usage


class ValidationError(StolonAdminError):
    """Arguments parsed but their combination is invalid"""


class ConfigurationError(StolonAdminError):
    """Missing or malformed environment configuration"""


class PayloadReadError(StolonAdminError):
    """Configuration payload could not be read from a file or stdin"""


class ClientError(StolonAdminError):
    """Failure from the cluster store client, including connectivity and TLS"""


class ClusterNotFoundError(ClientError):
    """The requested cluster has no data in the store"""


class ListenerFault(StolonAdminError):
    """The HTTP listener could not start or stopped serving"""


class RPCError(StolonAdminError):
    """A JSON-RPC request could not be decoded or dispatched"""


class DatabaseOperationError(StolonAdminError):
    """A database operation failed"""
