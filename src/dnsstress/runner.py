"""
Stress runner.

Wires the workload, workers and aggregator together around one bounded
channel and runs them until cancelled or until the configured duration
has elapsed.
"""

import asyncio
import logging
import time
from typing import Callable, Optional

from .models import IntervalReport, Query, StressConfig
from .query_engine import DNSExchange
from .statistics import ReportCallback, StatsAggregator
from .worker import Worker
from .workload import check_domain, dropped_queries, partition_queries


logger = logging.getLogger(__name__)


class StressRunner:
    """
    Orchestrates a stress run.

    Every worker shares the resolver target, the exchange and the channel;
    nothing else is shared.
    """

    def __init__(
        self,
        config: StressConfig,
        queries: list[Query],
        exchange: Optional[DNSExchange] = None,
        report_callback: Optional[ReportCallback] = None,
        start_callback: Optional[Callable[[int], None]] = None,
    ):
        """
        Initialize the runner.

        Args:
            config: Run configuration
            queries: Full query set
            exchange: Exchange to use (built from config if None)
            report_callback: Called with each interval report
            start_callback: Called with the worker count once started

        Raises:
            ValueError: If there are no queries, or fewer than workers,
                or a domain is not a valid DNS name
        """
        if not queries:
            raise ValueError("At least one query is required")
        if len(queries) < config.concurrency:
            raise ValueError(
                f"{len(queries)} queries cannot be split across "
                f"{config.concurrency} workers; lower the concurrency"
            )
        for query in queries:
            check_domain(query.domain)

        self.config = config
        self.queries = queries
        self.exchange = exchange or DNSExchange(
            config.resolver,
            timeout=config.timeout,
            max_inflight=config.max_inflight,
        )
        self.report_callback = report_callback
        self.start_callback = start_callback
        self.aggregator: Optional[StatsAggregator] = None
        self._started: Optional[float] = None

    async def run(self) -> IntervalReport:
        """
        Run the workers and the aggregator.

        Returns:
            Totals for the whole run, once the duration elapses or the
            run is cancelled
        """
        config = self.config
        channel: asyncio.Queue = asyncio.Queue(maxsize=config.concurrency)

        dropped = dropped_queries(self.queries, config.concurrency)
        if dropped:
            logger.warning(
                "%d trailing queries not assigned to any worker", dropped
            )

        partitions = partition_queries(self.queries, config.concurrency)
        workers = [
            Worker(worker_id, partition, channel, self.exchange, config)
            for worker_id, partition in enumerate(partitions)
        ]
        self.aggregator = StatsAggregator(channel, config, self.report_callback)

        self._started = time.perf_counter()
        tasks = [asyncio.create_task(worker.run()) for worker in workers]
        tasks.append(asyncio.create_task(self.aggregator.run()))
        if self.start_callback:
            self.start_callback(len(workers))

        try:
            await asyncio.wait_for(asyncio.gather(*tasks), timeout=config.duration)
        except asyncio.TimeoutError:
            logger.debug("Run duration of %ss elapsed", config.duration)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            await self.exchange.close()

        return self.summary()

    def summary(self) -> Optional[IntervalReport]:
        """Totals since the run started, or None if it never started."""
        if self.aggregator is None or self._started is None:
            return None
        return self.aggregator.totals.report(time.perf_counter() - self._started)
