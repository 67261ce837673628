"""
Core Libraries

Shared functionality and utilities for stolonctl and stolonrpc.
"""

from .config import CLIConfig, RPCServiceConfig, resolve_cli_config
from .exceptions import (
    StolonAdminError, ParseError, ValidationError, ConfigurationError, PayloadReadError,
    ClientError, ClusterNotFoundError, ListenerFault, RPCError, DatabaseOperationError
)
from .payload import resolve_payload
from .utils import setup_cli_logging, setup_service_logging, parse_log_level

__all__ = [
    'CLIConfig',
    'RPCServiceConfig',
    'resolve_cli_config',
    'StolonAdminError',
    'ParseError',
    'ValidationError',
    'ConfigurationError',
    'PayloadReadError',
    'ClientError',
    'ClusterNotFoundError',
    'ListenerFault',
    'RPCError',
    'DatabaseOperationError',
    'resolve_payload',
    'setup_cli_logging',
    'setup_service_logging',
    'parse_log_level',
]
