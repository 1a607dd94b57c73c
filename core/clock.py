"""
Clocks and cooperative periodic tasks.

Tasks never sleep on ``asyncio.sleep`` directly: they go through a
``Clock`` so tests can swap in ``ManualClock`` and drive ticks without
real waiting. Stopping is cooperative and only observed between
iterations.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import List, Optional

from core.observability.logging_config import bind_context
from core.observability.metrics import record_task_error


class Clock(ABC):
    @abstractmethod
    def now(self) -> float:
        pass

    @abstractmethod
    async def sleep(self, seconds: float, stop_event: Optional[asyncio.Event] = None) -> None:
        """Wait ``seconds`` or until ``stop_event`` is set, whichever comes first."""
        pass


class SystemClock(Clock):
    def now(self) -> float:
        return time.time()

    async def sleep(self, seconds: float, stop_event: Optional[asyncio.Event] = None) -> None:
        if stop_event is None:
            await asyncio.sleep(seconds)
            return
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass


class ManualClock(Clock):
    """Deterministic clock: ``sleep`` advances virtual time instantly."""

    def __init__(self, start: float = 1_700_000_000.0):
        self._now = start
        self.sleeps: List[float] = []

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> None:
        self._now += seconds

    async def sleep(self, seconds: float, stop_event: Optional[asyncio.Event] = None) -> None:
        self.sleeps.append(seconds)
        self._now += seconds
        # Yield so other tasks get a turn
        await asyncio.sleep(0)


class PeriodicTask(ABC):
    """
    Runs ``run_once`` every ``interval`` seconds until stopped.

    A failed iteration is logged and followed by ``error_backoff`` instead
    of the normal interval; the loop itself never dies from an iteration
    error.
    """

    def __init__(
        self,
        name: str,
        interval: float,
        error_backoff: float = 5.0,
        clock: Optional[Clock] = None,
    ):
        self.name = name
        self.interval = interval
        self.error_backoff = error_backoff
        self.clock = clock or SystemClock()
        self.iterations = 0
        self.failures = 0
        self.logger = logging.getLogger(name)

    @abstractmethod
    async def run_once(self) -> None:
        pass

    async def step(self) -> float:
        """Run one iteration and return how long to wait before the next one."""
        self.iterations += 1
        try:
            await self.run_once()
            return self.interval
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.failures += 1
            record_task_error(self.name)
            self.logger.error(f"💥 {self.name} iteration failed: {e}", exc_info=True)
            return self.error_backoff

    async def run(self, stop_event: asyncio.Event) -> None:
        # Task-local: every task runs in its own asyncio context
        bind_context(task=self.name)
        self.logger.info(f"🕒 {self.name} started (every {self.interval}s)")
        while not stop_event.is_set():
            delay = await self.step()
            if stop_event.is_set():
                break
            await self.clock.sleep(delay, stop_event)
        self.logger.info(f"🛑 {self.name} stopped")


class TaskRunner:
    """Starts a set of periodic tasks side by side and stops them together."""

    def __init__(self, tasks: List[PeriodicTask]):
        self.tasks = list(tasks)
        self.stop_event = asyncio.Event()
        self._running: List[asyncio.Task] = []
        self.logger = logging.getLogger("TaskRunner")

    async def start(self) -> None:
        if self._running:
            return
        self.stop_event.clear()
        for task in self.tasks:
            self._running.append(asyncio.create_task(task.run(self.stop_event), name=task.name))
        self.logger.info(f"🚀 Started {len(self._running)} periodic tasks")

    def request_stop(self) -> None:
        self.stop_event.set()

    async def stop(self) -> None:
        """Signal stop and wait for in-flight iterations to finish."""
        self.stop_event.set()
        if self._running:
            await asyncio.gather(*self._running, return_exceptions=True)
        self._running = []
        self.logger.info("🛑 All periodic tasks stopped")

    async def wait(self) -> None:
        await self.stop_event.wait()
        await self.stop()
