"""
stolonrpc Application

Startup sequence for the JSON-RPC service: environment configuration,
logging, endpoint assembly, then the supervision loop.
"""

import asyncio
import logging
import sys
from typing import Optional

from aiohttp import web

from .core.config import RPCServiceConfig
from .core.constants import RPCConstants
from .core.exceptions import ConfigurationError
from .core.models import ListenerFaultOutcome, SupervisionOutcome
from .core.utils import setup_service_logging
from .rpc import ConnSettings, DatabaseOperation, JSONCodec, RPCServer, ServiceSupervisor

logger = logging.getLogger(__name__)


def create_rpc_server(settings: RPCServiceConfig, log: Optional[logging.Logger] = None,
                      operations: Optional[DatabaseOperation] = None) -> RPCServer:
    """
    Build the RPC server with the JSON codec and the database service

    Args:
        settings: Service configuration
        log: Logger passed to the server
        operations: Database service (defaults to one bound to settings)

    Returns:
        RPCServer: Server ready to be mounted
    """
    server = RPCServer(log)
    for content_type in RPCConstants.CONTENT_TYPES:
        server.register_codec(JSONCodec(), content_type)
    server.register_service(operations or DatabaseOperation(ConnSettings.from_config(settings)),
                            RPCConstants.SERVICE_NAME)
    return server


def create_application(settings: RPCServiceConfig, log: Optional[logging.Logger] = None,
                       operations: Optional[DatabaseOperation] = None) -> web.Application:
    """Mount the RPC endpoint at /rpc on an aiohttp application"""
    server = create_rpc_server(settings, log, operations)
    app = web.Application()
    app.router.add_route("*", RPCConstants.PATH, server.handle)
    return app


def report_outcome(outcome: SupervisionOutcome, log: logging.Logger) -> int:
    """
    Log how the service ended

    Returns:
        int: Process exit code
    """
    if isinstance(outcome, ListenerFaultOutcome):
        log.critical(f"Listener failed: {outcome.error}")
    else:
        log.info(f"Captured {outcome.name}. Exiting...")
    return outcome.exit_code


def main() -> int:
    """stolonrpc entry point"""
    try:
        settings = RPCServiceConfig.from_env()
        app_logger = setup_service_logging(settings.log_level)
    except ConfigurationError as e:
        print(f"Fatal: {e}", file=sys.stderr)
        return 1

    app_logger.info(f"Start with config: {settings}")

    app = create_application(settings, app_logger)
    supervisor = ServiceSupervisor(app, settings.port, log=app_logger)
    outcome = asyncio.run(supervisor.supervise())
    return report_outcome(outcome, app_logger)


if __name__ == "__main__":
    sys.exit(main())
