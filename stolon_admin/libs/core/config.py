"""
Configuration Management

Process configuration for stolonctl and stolonrpc. Values come from
command-line flags or environment variables; environment lookups go through
python-decouple so a local .env or settings.ini file is honoured as well.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from decouple import config, UndefinedValueError

from .constants import EnvVars, ErrorMessages, RPCConstants, StoreConstants
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def env_default(name: str, default: str = "") -> str:
    """
    Look up an environment variable for use as a flag default.

    Args:
        name: Environment variable name
        default: Value used when the variable is unset

    Returns:
        str: The variable value or default
    """
    return config(name, default=default)


@dataclass(frozen=True)
class CLIConfig:
    """Store connection settings for stolonctl"""

    store_endpoints: str = ""
    store_backend: str = ""
    store_cert_file: str = ""
    store_key_file: str = ""
    store_cacert_file: str = ""
    debug: bool = False

    @property
    def backend(self) -> str:
        return (self.store_backend or StoreConstants.DEFAULT_BACKEND.value).lower()

    def endpoint_list(self) -> List[str]:
        """
        Split the comma-delimited endpoint string.

        Falls back to the backend's default endpoint when nothing is configured.

        Returns:
            List of endpoints in the order given
        """
        endpoints = [e.strip() for e in self.store_endpoints.split(",") if e.strip()]
        if endpoints:
            return endpoints
        try:
            backend = StoreConstants.Backend(self.backend)
        except ValueError:
            return []
        return [StoreConstants.DEFAULT_ENDPOINTS[backend]]

    def uses_tls(self) -> bool:
        return bool(self.store_cert_file or self.store_key_file or self.store_cacert_file)


@dataclass(frozen=True)
class RPCServiceConfig:
    """stolonrpc settings, read once from the environment at startup"""

    log_level: str
    port: int
    database_host: str
    database_port: int
    database_username: str

    @classmethod
    def from_env(cls) -> "RPCServiceConfig":
        """
        Build the service configuration from STOLONRPC_* variables.

        Returns:
            RPCServiceConfig: Fully resolved configuration

        Raises:
            ConfigurationError: If a required variable is missing or malformed
        """
        try:
            port = config(EnvVars.RPC_PORT, cast=int)
            database_port = config(EnvVars.RPC_DB_PORT, default=RPCConstants.DEFAULT_DB_PORT, cast=int)
            settings = cls(
                log_level=config(EnvVars.RPC_LOG_LEVEL, default=RPCConstants.DEFAULT_LOG_LEVEL),
                port=port,
                database_host=config(EnvVars.RPC_DB_HOST, default=RPCConstants.DEFAULT_DB_HOST),
                database_port=database_port,
                database_username=config(EnvVars.RPC_DB_USERNAME, default=RPCConstants.DEFAULT_DB_USERNAME),
            )
        except (UndefinedValueError, ValueError) as e:
            raise ConfigurationError(f"{ErrorMessages.CANT_PARSE_CONFIG}: {e}") from e

        for name, value in (("port", settings.port), ("database port", settings.database_port)):
            if not 0 <= value <= 65535:
                raise ConfigurationError(f"{ErrorMessages.CANT_PARSE_CONFIG}: {name} out of range: {value}")

        return settings


def _flag_or_env(flag_value: Optional[str], env_name: str) -> str:
    return flag_value if flag_value is not None else env_default(env_name)


def resolve_cli_config(store_endpoints: Optional[str] = None, store_backend: Optional[str] = None,
                       store_cert_file: Optional[str] = None, store_key_file: Optional[str] = None,
                       store_cacert_file: Optional[str] = None, debug: bool = False) -> CLIConfig:
    """
    Combine flag values with environment fallbacks. A flag given on the command
    line wins, even when it is empty; None means the flag was not given.

    Returns:
        CLIConfig: Immutable, fully resolved store configuration
    """
    return CLIConfig(
        store_endpoints=_flag_or_env(store_endpoints, EnvVars.STORE_ENDPOINTS),
        store_backend=_flag_or_env(store_backend, EnvVars.STORE_BACKEND),
        store_cert_file=_flag_or_env(store_cert_file, EnvVars.STORE_CERT),
        store_key_file=_flag_or_env(store_key_file, EnvVars.STORE_KEY),
        store_cacert_file=_flag_or_env(store_cacert_file, EnvVars.STORE_CA_CERT),
        debug=debug,
    )
