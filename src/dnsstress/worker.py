"""
Stress workers.

Each worker cycles through its own slice of the query set forever,
sending queries as fast as the resolver answers (or, in flood mode,
without waiting for answers) and reporting a StatsMessage to the
aggregator every ``display_step`` attempts.
"""

import asyncio
import itertools
import logging

from .models import Query, StatsMessage, StressConfig
from .query_engine import DNSExchange


logger = logging.getLogger(__name__)


class Worker:
    """Drives one partition of the query set."""

    def __init__(
        self,
        worker_id: int,
        queries: list[Query],
        channel: asyncio.Queue,
        exchange: DNSExchange,
        config: StressConfig,
    ):
        self.worker_id = worker_id
        self.queries = queries
        self.channel = channel
        self.exchange = exchange
        self.config = config

        self._reset()

    def _reset(self):
        self._errors = 0
        self._elapsed_ms = 0.0
        self._max_elapsed_ms = 0.0

    async def run(self):
        """Loop over the partition until cancelled."""
        if not self.queries:
            logger.warning("Worker #%d has no queries assigned, exiting", self.worker_id)
            return

        logger.debug("Starting worker #%d with %d queries", self.worker_id, len(self.queries))
        for query in itertools.cycle(self.queries):
            await self.run_window(query)

    async def run_window(self, query: Query) -> StatsMessage:
        """
        Send ``display_step`` attempts for one query and report them.

        Returns:
            The StatsMessage put on the channel
        """
        config = self.config
        message = self.exchange.build_query(query, iterative=config.iterative)

        for _ in range(config.display_step):
            if config.random_ids:
                self.exchange.assign_random_id(message)

            if config.flood:
                await self.exchange.dispatch(message)
                continue

            result = await self.exchange.exchange(message)
            self._elapsed_ms += result.elapsed_ms
            if result.elapsed_ms > self._max_elapsed_ms:
                self._max_elapsed_ms = result.elapsed_ms
            if not result.is_success:
                self._errors += 1
                logger.debug(
                    "%s %s error: %s (%s)",
                    query.domain,
                    query.record_type.value,
                    result.error,
                    config.resolver.address,
                )

        stats = StatsMessage(
            sent=config.display_step,
            errors=self._errors,
            elapsed_ms=self._elapsed_ms,
            max_elapsed_ms=self._max_elapsed_ms,
        )
        # Blocks while the channel is full
        await self.channel.put(stats)
        self._reset()

        if config.flood:
            # Let the dispatched exchanges run
            await asyncio.sleep(0)

        return stats
