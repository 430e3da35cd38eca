"""
Scheduler module for the server watch system.

This module provides the cancellable periodic loop that drives auto-update.
The loop runs as a single asyncio task and is stopped through an explicit
stop event that is awaited to completion.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from .diagnostics import DiagnosticLogger
from .enums import LogLevel
from .exceptions import UsageError
from .i18n import get_message


class AutoUpdater:
    """
    Runs an async cycle callback every ``interval`` seconds until stopped.

    ``stop`` wakes the inter-cycle wait immediately but lets an in-flight
    cycle finish. No new cycle starts once the stop event is set.
    """

    def __init__(
        self,
        cycle: Callable[[], Awaitable[None]],
        logger: Optional[DiagnosticLogger] = None,
        language: Optional[str] = None,
    ) -> None:
        self._cycle = cycle
        self._logger = logger
        self._language = language
        self._task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._interval = 0.0
        self._cycles_completed = 0

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def cycles_completed(self) -> int:
        return self._cycles_completed

    def is_running(self) -> bool:
        """Check if the loop task is alive."""
        return self._task is not None and not self._task.done()

    def start(self, interval: float) -> None:
        """
        Launch the loop task.

        Args:
            interval: Seconds to wait between the end of one cycle and the
                start of the next

        Raises:
            UsageError: If the interval is negative or the loop is running
        """
        if interval < 0:
            raise UsageError(
                code="negative_interval",
                message=get_message("autoupdate.negative_interval", self._language, interval=interval),
                details={"interval": interval},
            )
        if self.is_running():
            raise UsageError(code="already_running", message="Auto-update loop is already running")

        self._interval = interval
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self.run(self._stop_event))

    async def stop(self) -> None:
        """Signal the loop to stop and wait until it has exited."""
        if self._task is None:
            return

        if self._stop_event is not None:
            self._stop_event.set()

        task = self._task
        # Raises only on our own cancellation, never with the task's outcome
        await asyncio.wait({task})
        self._task = None
        self._stop_event = None

        if task.cancelled():
            self._log(LogLevel.DEBUG, "Auto-update loop was cancelled before stop", {})
            return
        error = task.exception()
        if error is not None:
            self._log(LogLevel.ERROR, f"Auto-update loop crashed: {error!r}", {"error": repr(error)})

    async def run(self, stop_event: asyncio.Event) -> None:
        """
        Run the loop until ``stop_event`` is set.

        Args:
            stop_event: Event signalling the loop to stop
        """
        while not stop_event.is_set():
            try:
                await self._cycle()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                # Log error but keep the loop alive
                self._log(LogLevel.ERROR, f"Update cycle failed: {e!r}", {"error": repr(e)})
            self._cycles_completed += 1

            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                pass

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        if self._logger:
            self._logger.log(level, "AutoUpdater", message, data)
