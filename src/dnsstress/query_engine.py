"""
DNS exchange engine.

Builds query messages and performs single UDP request/response round
trips with high-resolution timing. Every exchange uses a fresh socket
that is closed once the attempt finishes.
"""

import asyncio
import secrets
import time
from typing import Optional

import dns.asyncquery
import dns.exception
import dns.flags
import dns.message
import dns.rdatatype

from .models import (
    ExchangeResult,
    ExchangeStatus,
    Query,
    ResolverTarget,
)


MAX_REQUEST_ID = 65536


class DNSExchange:
    """
    UDP exchange against a single resolver target.

    Also owns the fire-and-forget tasks spawned in flood mode.
    """

    def __init__(
        self,
        resolver: ResolverTarget,
        timeout: float = 2.0,
        max_inflight: int = 0,
    ):
        """
        Initialize the exchange.

        Args:
            resolver: Target to send queries to
            timeout: Per-exchange timeout in seconds
            max_inflight: Cap on concurrent fire-and-forget exchanges
                (0 leaves them unbounded)
        """
        self.resolver = resolver
        self.timeout = timeout
        self.max_inflight = max_inflight
        self._inflight: set[asyncio.Task] = set()
        self._slots: Optional[asyncio.Semaphore] = None

    @staticmethod
    def build_query(query: Query, iterative: bool = False) -> dns.message.Message:
        """
        Create a query message for a (domain, record type) pair.

        Recursion desired is set unless iterative is requested.
        """
        rdtype = dns.rdatatype.from_text(query.record_type.value)
        message = dns.message.make_query(query.domain, rdtype)
        if iterative:
            message.flags &= ~dns.flags.RD
        return message

    @staticmethod
    def assign_random_id(message: dns.message.Message) -> dns.message.Message:
        """Replace the transaction identifier with a random one."""
        message.id = secrets.randbelow(MAX_REQUEST_ID)
        return message

    async def exchange(self, message: dns.message.Message) -> ExchangeResult:
        """
        Send one query and wait for one response.

        Any well-formed response counts as success, whatever its rcode.
        Failures are returned, never raised.
        """
        start = time.perf_counter_ns()
        try:
            await dns.asyncquery.udp(
                message,
                self.resolver.host,
                timeout=self.timeout,
                port=self.resolver.port,
            )
        except dns.exception.Timeout:
            status = ExchangeStatus.TIMEOUT
            error = f"timed out after {self.timeout}s"
        except Exception as e:
            status = ExchangeStatus.ERROR
            error = str(e) or type(e).__name__
        else:
            status = ExchangeStatus.SUCCESS
            error = None

        elapsed_ms = (time.perf_counter_ns() - start) / 1_000_000
        return ExchangeResult(status=status, elapsed_ms=elapsed_ms, error=error)

    @property
    def inflight(self) -> int:
        """Number of fire-and-forget exchanges not yet finished."""
        return len(self._inflight)

    async def dispatch(self, message: dns.message.Message) -> None:
        """
        Start an exchange without waiting for its response.

        The message is copied so later id changes do not affect it. With
        max_inflight set this waits for a free slot first; otherwise the
        number of outstanding tasks is unbounded.
        """
        snapshot = dns.message.from_wire(message.to_wire())

        if self.max_inflight:
            if self._slots is None:
                self._slots = asyncio.Semaphore(self.max_inflight)
            await self._slots.acquire()

        task = asyncio.create_task(self.exchange(snapshot))
        self._inflight.add(task)
        task.add_done_callback(self._finished)

    def _finished(self, task: asyncio.Task):
        self._inflight.discard(task)
        if self._slots is not None:
            self._slots.release()

    async def close(self):
        """Cancel outstanding fire-and-forget exchanges."""
        tasks = list(self._inflight)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._inflight.clear()
