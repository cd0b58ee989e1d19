import asyncio
import signal
import time
from abc import ABC, abstractmethod

from shared.infrastructure.observability.logger import get_logger, log_context

logger = get_logger(__name__)


class BaseWorker(ABC):
    """Base class for interval-driven background workers."""

    def __init__(self, worker_name: str, interval: float = 60, error_backoff: float = 300):
        self.worker_name = worker_name
        self.interval = interval
        self.error_backoff = error_backoff
        self.is_running = False
        self.shutdown_event = asyncio.Event()

    async def shutdown(self):
        """Graceful shutdown: the current pass stops scheduling new work."""
        self.is_running = False
        self.shutdown_event.set()
        logger.info("Worker shutting down", worker=self.worker_name)

    def setup_signal_handlers(self):
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, lambda: asyncio.ensure_future(self.shutdown()))
            except NotImplementedError:
                # not available on every platform's event loop
                pass

    async def _wait(self, seconds: float) -> None:
        try:
            await asyncio.wait_for(self.shutdown_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    async def run_once(self) -> bool:
        start_time = time.perf_counter()
        with log_context(worker=self.worker_name):
            success = await self.execute()
        duration = round(time.perf_counter() - start_time, 3)
        if success:
            logger.info("Worker pass completed", worker=self.worker_name, duration=duration)
        else:
            logger.warning("Worker pass completed with errors", worker=self.worker_name, duration=duration)
        return success

    async def run(self):
        """Main worker loop; returns once shutdown() has been called."""
        self.is_running = True
        logger.info("Worker started", worker=self.worker_name, interval=self.interval)

        while self.is_running and not self.shutdown_event.is_set():
            try:
                await self.run_once()
                await self._wait(self.interval)
            except asyncio.CancelledError:
                logger.info("Worker cancelled", worker=self.worker_name)
                break
            except Exception as e:
                logger.error("Worker pass failed", worker=self.worker_name, error=str(e), exc_info=True)
                await self._wait(min(self.error_backoff, self.interval * 2))

        logger.info("Worker stopped", worker=self.worker_name)

    @abstractmethod
    async def execute(self) -> bool:
        """Execute one pass of the worker's task."""
