"""
Payload Resolver

Reads the configuration document for patch and replace from exactly one of
two channels: a named file or standard input.
"""

import logging
import sys
from typing import BinaryIO, Optional

from .constants import ErrorMessages
from .exceptions import PayloadReadError, ValidationError

logger = logging.getLogger(__name__)


def resolve_payload(file_path: str, read_stdin: bool, stdin: Optional[BinaryIO] = None) -> bytes:
    """
    Read a configuration payload from a file or from standard input.

    The bytes are returned exactly as read; their structure is not inspected.

    Args:
        file_path: Path to read from, empty when reading stdin
        read_stdin: Read the whole of standard input instead of a file
        stdin: Binary stream used in place of sys.stdin (optional)

    Returns:
        bytes: The complete payload

    Raises:
        ValidationError: If both or neither of file_path and read_stdin are given
        PayloadReadError: If the file or stream cannot be read
    """
    if (read_stdin and file_path) or (not read_stdin and not file_path):
        raise ValidationError(ErrorMessages.NEED_FILE_OR_STDIN)

    if read_stdin:
        stream = stdin if stdin is not None else sys.stdin.buffer
        try:
            data = stream.read()
        except (OSError, ValueError) as e:
            raise PayloadReadError(f"{ErrorMessages.CANNOT_READ_STDIN}: {e}") from e
        logger.debug(f"Read {len(data)} bytes from stdin")
        return data

    try:
        with open(file_path, 'rb') as f:
            data = f.read()
    except OSError as e:
        raise PayloadReadError(f"{ErrorMessages.CANNOT_READ_FILE} {file_path}: {e}") from e
    logger.debug(f"Read {len(data)} bytes from {file_path}")
    return data
