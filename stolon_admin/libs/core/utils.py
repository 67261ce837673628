"""
Core Utilities

Logging setup and output helpers used by both stolonctl and stolonrpc.
"""

import json
import logging
import sys
from typing import Any, Dict, Optional, TextIO

import yaml

from .constants import ErrorMessages
from .exceptions import ConfigurationError

APP_LOGGER_NAME = "stolon_admin"

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Severity names accepted by STOLONRPC_LOG_LEVEL
LOG_LEVELS = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "panic": logging.CRITICAL,
}


def parse_log_level(level: str) -> int:
    """
    Map a severity name to a logging level.

    Args:
        level: Severity name, case-insensitive

    Returns:
        int: logging level constant

    Raises:
        ConfigurationError: If the name is not a known severity
    """
    try:
        return LOG_LEVELS[level.strip().lower()]
    except (KeyError, AttributeError):
        raise ConfigurationError(ErrorMessages.UNKNOWN_LOG_LEVEL.format(level=level))


def setup_logging(level: int = logging.WARNING, stream: Optional[TextIO] = None) -> logging.Logger:
    """
    Configure the application logger.

    Args:
        level: Logging level
        stream: Output stream (defaults to stderr)

    Returns:
        logging.Logger: The configured application logger
    """
    app_logger = logging.getLogger(APP_LOGGER_NAME)
    app_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for handler in app_logger.handlers[:]:
        app_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    app_logger.addHandler(console_handler)
    app_logger.propagate = False

    # Reduce noise from urllib3 unless debugging
    logging.getLogger('urllib3').setLevel(logging.DEBUG if level <= logging.DEBUG else logging.WARNING)

    app_logger.debug("Debug logging enabled")
    return app_logger


def setup_cli_logging(debug: bool = False) -> logging.Logger:
    """Logging for stolonctl: quiet on stderr unless --debug"""
    return setup_logging(logging.DEBUG if debug else logging.WARNING, sys.stderr)


def setup_service_logging(level: str) -> logging.Logger:
    """
    Logging for stolonrpc at the configured severity, written to stdout.

    Raises:
        ConfigurationError: If the severity name is not recognised
    """
    return setup_logging(parse_log_level(level), sys.stdout)


def format_json(data: Any, indent: str = "\t") -> str:
    return json.dumps(data, indent=indent, ensure_ascii=False)


def format_yaml(data: Any) -> str:
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=False).rstrip("\n")


def format_status_table(status: Dict[str, Any]) -> str:
    """
    Render a cluster status document as human-readable text.

    Args:
        status: Status document with cluster, master and nodes keys

    Returns:
        str: Text rendering, one line per node
    """
    lines = [f"Cluster: {status.get('cluster', '')}"]
    lines.append(f"Master: {status.get('master') or '(none)'}")

    nodes = status.get('nodes') or []
    if not nodes:
        return "\n".join(lines)

    rows = [("ID", "ROLE", "LISTEN ADDRESS", "PG ADDRESS")]
    for node in nodes:
        rows.append((
            node.get('id', ''),
            node.get('role', ''),
            _join_address(node.get('listen_address'), node.get('port')),
            _join_address(node.get('pg_listen_address'), node.get('pg_port')),
        ))

    widths = [max(len(row[i]) for row in rows) for i in range(len(rows[0]))]
    lines.append("")
    for row in rows:
        lines.append("  ".join(cell.ljust(width) for cell, width in zip(row, widths)).rstrip())
    return "\n".join(lines)


def _join_address(host: Optional[str], port: Optional[str]) -> str:
    if not host:
        return ""
    return f"{host}:{port}" if port else host
