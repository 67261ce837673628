"""
Database Operations

The DatabaseOperation RPC service. Each method runs a statement through the
psql client against the configured PostgreSQL endpoint.
"""

import logging
import re
import shutil
import subprocess
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..core.config import RPCServiceConfig
from ..core.exceptions import DatabaseOperationError, ValidationError

logger = logging.getLogger(__name__)

IDENTIFIER_PATTERN = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')
PSQL_TIMEOUT = 60
MAINTENANCE_DATABASE = "postgres"


@dataclass(frozen=True)
class ConnSettings:
    """Where to reach PostgreSQL; authentication is left to the environment"""

    host: str
    port: int
    username: str

    @classmethod
    def from_config(cls, settings: RPCServiceConfig) -> "ConnSettings":
        return cls(host=settings.database_host, port=settings.database_port, username=settings.database_username)


def _identifier(params: Any, field: str, required: bool = True) -> Optional[str]:
    if not isinstance(params, dict):
        raise ValidationError("params must be an object")
    value = params.get(field)
    if value in (None, ""):
        if required:
            raise ValidationError(f"{field} is required")
        return None
    if not isinstance(value, str) or not IDENTIFIER_PATTERN.match(value):
        raise ValidationError(f"invalid {field}: {value!r}")
    return value


class DatabaseOperation:
    """Database administration exposed over JSON-RPC"""

    RPC_METHODS = {
        "CreateDatabase": "create_database",
        "DeleteDatabase": "delete_database",
        "ListDatabases": "list_databases",
    }

    def __init__(self, conn: ConnSettings, psql_binary: Optional[str] = None):
        """
        Initialize the service

        Args:
            conn: PostgreSQL connection settings
            psql_binary: psql executable (looked up in PATH when omitted)
        """
        self.conn = conn
        self._psql_binary = psql_binary

    def _find_psql_binary(self) -> str:
        if self._psql_binary:
            return self._psql_binary
        path = shutil.which("psql")
        if not path:
            raise DatabaseOperationError("psql binary not found in PATH")
        self._psql_binary = path
        logger.debug(f"Found psql binary at: {path}")
        return path

    def _run_sql(self, statement: str) -> List[str]:
        """
        Run one SQL statement

        Args:
            statement: SQL to execute

        Returns:
            List of output rows (unaligned, tuples only)

        Raises:
            DatabaseOperationError: If psql cannot run or the statement fails
        """
        cmd = [
            self._find_psql_binary(),
            '-h', self.conn.host,
            '-p', str(self.conn.port),
            '-U', self.conn.username,
            '-d', MAINTENANCE_DATABASE,
            '-w',
            '-v', 'ON_ERROR_STOP=1',
            '-A', '-t',
            '-c', statement,
        ]
        logger.debug(f"Running: {statement}")
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=PSQL_TIMEOUT)
        except subprocess.TimeoutExpired as e:
            raise DatabaseOperationError(f"psql timed out after {PSQL_TIMEOUT}s") from e
        except OSError as e:
            raise DatabaseOperationError(f"failed to run psql: {e}") from e

        if result.returncode != 0:
            raise DatabaseOperationError(result.stderr.strip() or f"psql exited with {result.returncode}")
        return [line for line in result.stdout.splitlines() if line]

    def create_database(self, params: Dict[str, Any]) -> Dict[str, Any]:
        name = _identifier(params, "Name")
        owner = _identifier(params, "Owner", required=False)
        statement = f'CREATE DATABASE "{name}"'
        if owner:
            statement += f' OWNER "{owner}"'
        self._run_sql(statement)
        logger.info(f"Created database {name}")
        return {"Name": name}

    def delete_database(self, params: Dict[str, Any]) -> Dict[str, Any]:
        name = _identifier(params, "Name")
        self._run_sql(f'DROP DATABASE "{name}"')
        logger.info(f"Deleted database {name}")
        return {"Name": name}

    def list_databases(self, params: Dict[str, Any]) -> Dict[str, Any]:
        rows = self._run_sql("SELECT datname FROM pg_database WHERE NOT datistemplate ORDER BY datname")
        return {"Databases": rows}
