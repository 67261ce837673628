"""
JSON-RPC Codec

Decodes {"method", "params", "id"} requests and encodes {"result", "error", "id"}
responses. params is a one-element array holding the argument object.
"""

import json
from dataclasses import dataclass
from typing import Any, Optional

from ..core.exceptions import RPCError


@dataclass
class RPCRequest:
    method: str
    params: Any
    id: Any = None


class JSONCodec:
    """JSON-RPC 1.0 style codec"""

    def decode_request(self, body: bytes) -> RPCRequest:
        """
        Parse a request body

        Args:
            body: Raw HTTP body

        Returns:
            RPCRequest: Method name, argument object and request id

        Raises:
            RPCError: If the body is not a valid request
        """
        try:
            message = json.loads(body)
        except (ValueError, UnicodeDecodeError) as e:
            raise RPCError(f"rpc: invalid request body: {e}") from e

        if not isinstance(message, dict):
            raise RPCError("rpc: request must be a JSON object")

        method = message.get("method")
        if not isinstance(method, str) or not method:
            raise RPCError("rpc: request has no method")

        params = message.get("params")
        if isinstance(params, list):
            if len(params) > 1:
                raise RPCError("rpc: params must hold a single argument")
            params = params[0] if params else {}
        elif params is None:
            params = {}

        return RPCRequest(method=method, params=params, id=message.get("id"))

    def encode_response(self, result: Any = None, error: Optional[str] = None, request_id: Any = None) -> bytes:
        payload = {
            "result": None if error is not None else result,
            "error": error,
            "id": request_id,
        }
        return json.dumps(payload).encode()
