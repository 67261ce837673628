"""
JSON-RPC Server

HTTP handler that routes "Service.Method" requests to registered service
objects. Codecs are chosen by the request's Content-Type.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Optional

from aiohttp import web

from ..core.exceptions import RPCError, StolonAdminError
from .codec import JSONCodec, RPCRequest

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


def normalize_content_type(content_type: str) -> str:
    return "".join(content_type.split()).lower()


class RPCServer:
    """Dispatches JSON-RPC requests to registered services"""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.logger = log or logger
        self._codecs: Dict[str, JSONCodec] = {}
        self._services: Dict[str, Dict[str, Callable[[Any], Any]]] = {}

    def register_codec(self, codec: JSONCodec, content_type: str) -> None:
        self._codecs[normalize_content_type(content_type)] = codec

    def register_service(self, receiver: Any, name: str) -> None:
        """
        Expose a service object's RPC methods under a service name

        The receiver lists its exported methods in an RPC_METHODS mapping of
        wire name to attribute name.

        Args:
            receiver: Service object
            name: Service name used in "Service.Method"

        Raises:
            RPCError: If the service exports nothing or is already registered
        """
        if name in self._services:
            raise RPCError(f"rpc: service already defined: {name}")
        exported = getattr(receiver, "RPC_METHODS", None) or {}
        methods = {wire_name: getattr(receiver, attr) for wire_name, attr in exported.items()}
        if not methods:
            raise RPCError(f"rpc: {name} has no exported methods")
        self._services[name] = methods
        self.logger.debug(f"Registered RPC service {name}: {', '.join(sorted(methods))}")

    def codec_for(self, content_type: str) -> Optional[JSONCodec]:
        normalized = normalize_content_type(content_type)
        if normalized in self._codecs:
            return self._codecs[normalized]
        return self._codecs.get(normalized.split(";", 1)[0])

    def lookup(self, method: str) -> Callable[[Any], Any]:
        service_name, _, method_name = method.rpartition(".")
        if not service_name:
            raise RPCError(f"rpc: service/method request ill-formed: {method!r}")
        service = self._services.get(service_name)
        if service is None:
            raise RPCError(f"rpc: can't find service {method!r}")
        handler = service.get(method_name)
        if handler is None:
            raise RPCError(f"rpc: can't find method {method!r}")
        return handler

    async def handle(self, request: web.Request) -> web.Response:
        if request.method != "POST":
            return web.Response(status=405, text=f"rpc: POST method required, received {request.method}")

        content_type = request.headers.get("Content-Type", "")
        codec = self.codec_for(content_type)
        if codec is None:
            return web.Response(status=415, text=f"rpc: unrecognized Content-Type: {content_type}")

        body = await request.read()
        try:
            rpc_request = codec.decode_request(body)
            handler = self.lookup(rpc_request.method)
        except RPCError as e:
            self.logger.debug(f"Rejected RPC request: {e}")
            return self._respond(codec, status=400, error=str(e))

        return await self._call(codec, handler, rpc_request)

    async def _call(self, codec: JSONCodec, handler: Callable[[Any], Any], rpc_request: RPCRequest) -> web.Response:
        self.logger.debug(f"RPC call {rpc_request.method} id={rpc_request.id}")
        try:
            # Handlers block on database work; keep them off the event loop
            result = await asyncio.to_thread(handler, rpc_request.params)
        except StolonAdminError as e:
            self.logger.warning(f"RPC {rpc_request.method} failed: {e}")
            return self._respond(codec, error=str(e), request_id=rpc_request.id)
        except Exception as e:
            self.logger.exception(f"Unexpected error in RPC {rpc_request.method}")
            return self._respond(codec, error=str(e), request_id=rpc_request.id)
        return self._respond(codec, result=result, request_id=rpc_request.id)

    @staticmethod
    def _respond(codec: JSONCodec, status: int = 200, result: Any = None, error: Optional[str] = None,
                 request_id: Any = None) -> web.Response:
        return web.Response(
            status=status,
            body=codec.encode_response(result, error, request_id),
            content_type=JSON_CONTENT_TYPE,
        )
