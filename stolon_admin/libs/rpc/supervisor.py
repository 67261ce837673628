"""
Service Supervisor

Runs the HTTP listener as a background task and waits for whichever comes
first: a listener fault or a termination signal. Exactly one outcome is
produced per run.
"""

import asyncio
import contextlib
import logging
import signal
from typing import Awaitable, Callable, Iterable, List, Optional

from aiohttp import web

from ..core.constants import RPCConstants
from ..core.exceptions import ListenerFault
from ..core.models import ListenerFaultOutcome, SupervisionOutcome, TerminationSignalOutcome

logger = logging.getLogger(__name__)


class ServiceSupervisor:
    """Owns the listener task and the signal and fault channels"""

    def __init__(self, app: web.Application, port: int, host: str = "",
                 log: Optional[logging.Logger] = None,
                 listener: Optional[Callable[[], Awaitable[None]]] = None,
                 signals: Iterable[int] = RPCConstants.TERMINATION_SIGNALS):
        """
        Initialize the supervisor

        Args:
            app: aiohttp application to serve
            port: TCP port to bind
            host: Bind address, empty for all interfaces
            log: Logger to report to
            listener: Coroutine function that serves until failure (defaults to serve)
            signals: Signals treated as termination requests
        """
        self.app = app
        self.port = port
        self.host = host
        self.logger = log or logger
        self.signals = tuple(signals)
        self._listener = listener or self.serve
        self._runner: Optional[web.AppRunner] = None
        self._faults: Optional[asyncio.Queue] = None
        self._signal_queue: Optional[asyncio.Queue] = None

    async def serve(self) -> None:
        """
        Bind and serve HTTP. Only ever ends by raising.

        Raises:
            OSError: If the port cannot be bound
        """
        self._runner = web.AppRunner(self.app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, host=self.host or None, port=self.port)
        await site.start()
        self.logger.info(f"Listening on {self.host}:{self.port}")
        await asyncio.Event().wait()

    async def _run_listener(self, faults: asyncio.Queue) -> None:
        try:
            await self._listener()
        except Exception as e:
            error: BaseException = e
        else:
            error = ListenerFault("listener stopped serving")
        if not faults.full():
            faults.put_nowait(error)

    def notify_signal(self, signum: int) -> None:
        """Deliver a signal to the supervision loop; extra signals are dropped"""
        if self._signal_queue is not None and not self._signal_queue.full():
            self._signal_queue.put_nowait(signum)

    def _install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> List[int]:
        installed = []
        for sig in self.signals:
            try:
                loop.add_signal_handler(sig, self.notify_signal, sig)
                installed.append(sig)
            except (NotImplementedError, RuntimeError, ValueError) as e:
                self.logger.warning(f"Cannot watch {signal.Signals(sig).name}: {e}")
        return installed

    async def supervise(self) -> SupervisionOutcome:
        """
        Start the listener and wait for the first fault or termination signal

        A fault wins if both are ready at the same time.

        Returns:
            SupervisionOutcome: ListenerFaultOutcome or TerminationSignalOutcome
        """
        loop = asyncio.get_running_loop()
        self._faults = asyncio.Queue(maxsize=1)
        self._signal_queue = asyncio.Queue(maxsize=1)
        installed = self._install_signal_handlers(loop)

        listener_task = asyncio.create_task(self._run_listener(self._faults))
        fault_wait = asyncio.create_task(self._faults.get())
        signal_wait = asyncio.create_task(self._signal_queue.get())

        try:
            done, _ = await asyncio.wait({fault_wait, signal_wait}, return_when=asyncio.FIRST_COMPLETED)
            if fault_wait in done:
                outcome: SupervisionOutcome = ListenerFaultOutcome(fault_wait.result())
            else:
                outcome = TerminationSignalOutcome(signal_wait.result())
        finally:
            for sig in installed:
                loop.remove_signal_handler(sig)
            for task in (fault_wait, signal_wait, listener_task):
                task.cancel()
            for task in (fault_wait, signal_wait, listener_task):
                with contextlib.suppress(asyncio.CancelledError):
                    await task
            if self._runner is not None:
                await self._runner.cleanup()
                self._runner = None

        return outcome
