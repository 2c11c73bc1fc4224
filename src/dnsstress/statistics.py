"""
Statistics aggregation for stress runs.

A single aggregator drains StatsMessages from every worker, folds them
into the current window and, unless running silent, reports the window
on a fixed wall-clock interval before resetting it.
"""

import asyncio
import logging
import time
from typing import Callable, Optional

from .models import IntervalReport, StatsMessage, StressConfig


logger = logging.getLogger(__name__)


# Type for report callback
ReportCallback = Callable[[IntervalReport], None]


class AggregateWindow:
    """Running sums and maximum over a set of StatsMessages."""

    def __init__(self):
        self.reset()

    def reset(self):
        self.sent = 0
        self.errors = 0
        self.elapsed_ms = 0.0
        self.max_elapsed_ms = 0.0

    def add(self, stats: StatsMessage):
        self.sent += stats.sent
        self.errors += stats.errors
        self.elapsed_ms += stats.elapsed_ms
        if stats.max_elapsed_ms > self.max_elapsed_ms:
            self.max_elapsed_ms = stats.max_elapsed_ms

    def report(self, duration_s: float) -> IntervalReport:
        """Snapshot the window as a report covering duration_s seconds."""
        return IntervalReport(
            sent=self.sent,
            errors=self.errors,
            elapsed_ms=self.elapsed_ms,
            max_elapsed_ms=self.max_elapsed_ms,
            duration_s=duration_s,
        )


class StatsAggregator:
    """
    Consumes worker statistics from the shared channel.

    Runs in one of two modes, fixed at construction: reporting (drain and
    print every display interval) or silent (flood mode, drain only).
    """

    def __init__(
        self,
        channel: asyncio.Queue,
        config: StressConfig,
        report_callback: Optional[ReportCallback] = None,
    ):
        """
        Initialize the aggregator.

        Args:
            channel: Queue the workers put StatsMessages on
            config: Run configuration
            report_callback: Called with each interval report
        """
        self.channel = channel
        self.config = config
        self.report_callback = report_callback
        self.silent = config.flood

        self.window = AggregateWindow()
        self.totals = AggregateWindow()
        self._window_started = time.perf_counter()

    def add(self, stats: StatsMessage):
        """Fold one message into the current window and the run totals."""
        self.window.add(stats)
        self.totals.add(stats)

    def flush(self, duration_s: Optional[float] = None) -> IntervalReport:
        """
        Close the current window and start a new one.

        Args:
            duration_s: Interval length; measured since the last flush
                when omitted

        Returns:
            IntervalReport for the closed window
        """
        now = time.perf_counter()
        if duration_s is None:
            duration_s = now - self._window_started
        report = self.window.report(duration_s)
        self.window.reset()
        self._window_started = now
        return report

    async def drain(self):
        """Receive messages forever."""
        while True:
            stats = await self.channel.get()
            self.add(stats)
            self.channel.task_done()

    async def report_forever(self):
        """Flush and report the window every display interval."""
        interval = self.config.display_interval
        self._window_started = time.perf_counter()
        while True:
            await asyncio.sleep(interval)
            report = self.flush()
            logger.debug("Interval closed: %s", report)
            if self.report_callback:
                self.report_callback(report)

    async def run(self):
        """Drain the channel, and report periodically unless silent."""
        if self.silent:
            await self.drain()
            return

        tasks = [
            asyncio.create_task(self.drain()),
            asyncio.create_task(self.report_forever()),
        ]
        try:
            await asyncio.gather(*tasks)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
