import asyncio
import logging
from datetime import datetime
from typing import Optional

from autopulse.services.found_status_resolver import FoundStatusResolver
from autopulse.services.process_status_advancer import ProcessStatusAdvancer
from autopulse.services.retention_cleaner import RetentionCleaner
from autopulse.utils.clock import utcnow


class PulseScheduler:
    """
    The single background loop driving the reconciliation pipeline.

    One iteration runs resolve -> advance -> cleanup in that order. Iterations
    start on a fixed-rate timer; if one overruns its slot the next starts
    immediately and missed ticks are dropped, so iterations never overlap or
    pile up. A failing iteration is logged and the loop carries on.

    Only one scheduler may run against a given event store.
    """

    def __init__(
        self,
        resolver: FoundStatusResolver,
        advancer: ProcessStatusAdvancer,
        cleaner: RetentionCleaner,
        interval_seconds: float = 1.0,
    ):
        self._resolver = resolver
        self._advancer = advancer
        self._cleaner = cleaner
        self._interval_seconds = interval_seconds

        self._stop_event: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None

        self.iterations = 0
        self.failed_iterations = 0
        self.last_run_at: Optional[datetime] = None

        logging.info(f"PulseScheduler initialized (interval: {interval_seconds}s)")

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> None:
        """Run one pipeline iteration. Stage errors propagate to the caller."""
        await self._resolver.resolve()
        await self._advancer.advance()
        await self._cleaner.cleanup()

    def start(self) -> asyncio.Task:
        if self.is_running:
            logging.warning("PulseScheduler is already running")
            return self._task

        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run_loop(), name="pulse-scheduler")
        return self._task

    async def stop(self, timeout: Optional[float] = None) -> None:
        """
        Signal the loop to stop and wait for the current iteration to finish.

        Args:
            timeout: Seconds to wait before cancelling the in-flight iteration
        """
        if self._task is None:
            return

        logging.info("PulseScheduler stop requested")
        self._stop_event.set()

        try:
            await asyncio.wait_for(self._task, timeout=timeout)
        except asyncio.TimeoutError:
            logging.warning("PulseScheduler did not stop in time, iteration cancelled")
        finally:
            self._task = None

    async def _run_loop(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        logging.info("PulseScheduler started")

        try:
            while not self._stop_event.is_set():
                try:
                    await self.run_once()
                except Exception as e:
                    self.failed_iterations += 1
                    logging.error(f"Unable to run pulse: {e}", exc_info=True)
                finally:
                    self.iterations += 1
                    self.last_run_at = utcnow()

                next_tick += self._interval_seconds
                now = loop.time()
                if next_tick < now:
                    # Overran: run again right away without queueing the missed ticks
                    next_tick = now

                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=next_tick - now)
                except asyncio.TimeoutError:
                    pass
        except asyncio.CancelledError:
            logging.info("PulseScheduler was cancelled")
            raise
        finally:
            logging.info("PulseScheduler stopped")
