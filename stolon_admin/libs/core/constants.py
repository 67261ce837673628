"""
Constants Module

Centralized constants for stolonctl and stolonrpc to eliminate magic strings.
"""

import signal
from enum import Enum


class EnvVars:
    """Environment variable names"""

    STORE_ENDPOINTS = "STOLONCTL_STORE_ENDPOINTS"
    STORE_BACKEND = "STOLONCTL_STORE_BACKEND"
    STORE_KEY = "STOLONCTL_STORE_KEY"
    STORE_CA_CERT = "STOLONCTL_STORE_CA_CERT"
    STORE_CERT = "STOLONCTL_STORE_CERT"

    RPC_LOG_LEVEL = "STOLONRPC_LOG_LEVEL"
    RPC_PORT = "STOLONRPC_PORT"
    RPC_DB_HOST = "STOLONRPC_DB_HOST"
    RPC_DB_PORT = "STOLONRPC_DB_PORT"
    RPC_DB_USERNAME = "STOLONRPC_DB_USERNAME"


class StoreConstants:
    """Coordination store constants"""

    class Backend(str, Enum):
        """Supported store backends"""
        ETCD = "etcd"
        CONSUL = "consul"

        def __str__(self) -> str:
            return self.value

        @classmethod
        def names(cls) -> list:
            return [backend.value for backend in cls]

    DEFAULT_BACKEND = Backend.ETCD
    DEFAULT_ENDPOINTS = {
        Backend.ETCD: "127.0.0.1:2379",
        Backend.CONSUL: "127.0.0.1:8500",
    }

    CLUSTER_PREFIX = "stolon/cluster/"
    CONFIG_KEY = "config"
    CLUSTERVIEW_KEY = "clusterview"
    KEEPERS_INFO_PREFIX = "keepers/info/"

    REQUEST_TIMEOUT = 10


class OutputConstants:
    """Output formats"""

    JSON = "json"
    YAML = "yaml"
    CONFIG_FORMATS = [JSON, YAML]

    ROLE_MASTER = "master"
    ROLE_STANDBY = "standby"


class RPCConstants:
    """JSON-RPC service constants"""

    PATH = "/rpc"
    CONTENT_TYPES = ["application/json", "application/json;charset=UTF-8"]
    SERVICE_NAME = "DatabaseOperation"

    DEFAULT_LOG_LEVEL = "info"
    DEFAULT_DB_HOST = "127.0.0.1"
    DEFAULT_DB_PORT = 5432
    DEFAULT_DB_USERNAME = "postgres"

    TERMINATION_SIGNALS = (signal.SIGINT, signal.SIGTERM)
    SIGNAL_NAMES = {
        signal.SIGINT: "interrupt",
        signal.SIGTERM: "terminated",
    }


class ErrorMessages:
    """Centralized error message templates"""

    NEED_FILE_OR_STDIN = "need either file to read from or readStdin option"
    CANNOT_READ_STDIN = "cannot read config file from stdin"
    CANNOT_READ_FILE = "can not read file"
    CANT_PARSE_CONFIG = "Can't parse config"
    UNKNOWN_BACKEND = "unknown store backend {backend!r}, expected one of: {choices}"
    TLS_FILE_NOT_FOUND = "cannot read TLS {kind} file: {path}"
    CLUSTER_NOT_FOUND = "cluster {name!r} not found in store"
    STORE_UNREACHABLE = "cannot reach {backend} store at {endpoints}: {error}"
    INVALID_CONFIG_DOCUMENT = "configuration document must be a JSON object"
    UNKNOWN_LOG_LEVEL = "not a valid log level: {level!r}"
