import asyncio
import time

import dns.flags
import pytest

from fakes import FakeExchange, udp_responder
from dnsstress.models import Query, RecordType, StressConfig
from dnsstress.query_engine import DNSExchange
from dnsstress.runner import StressRunner


def make_queries(n):
    return [Query(f"host{i}.example.", RecordType.A) for i in range(n)]


def test_runner_requires_queries(make_config):
    with pytest.raises(ValueError):
        StressRunner(make_config(), [])


def test_runner_requires_a_query_per_worker(make_config):
    with pytest.raises(ValueError, match="lower the concurrency"):
        StressRunner(make_config(concurrency=5), make_queries(3))


def test_unreachable_resolver_counts_every_request_as_error(make_config):
    reports = []
    config = make_config(concurrency=2, display_interval_ms=100, timeout=0.05, duration=0.6)
    runner = StressRunner(config, make_queries(2), report_callback=reports.append)

    started = time.perf_counter()
    totals = asyncio.run(runner.run())

    # Keeps running until the duration elapses
    assert time.perf_counter() - started >= 0.6
    assert reports
    assert totals.sent > 0
    assert totals.errors == totals.sent
    assert all(r.errors == r.sent for r in reports)


def test_reports_against_local_responder():
    reports = []
    started = []

    async def scenario():
        async with udp_responder() as (target, responder):
            config = StressConfig(
                resolver=target,
                concurrency=2,
                display_interval_ms=100,
                timeout=1.0,
                duration=0.5,
                iterative=True,
                random_ids=True,
            )
            runner = StressRunner(
                config,
                make_queries(4),
                report_callback=reports.append,
                start_callback=started.append,
            )
            totals = await runner.run()
            return totals, responder.received

    totals, received = asyncio.run(scenario())

    assert started == [2]
    assert totals.sent > 0
    assert totals.errors == 0
    assert totals.avg_latency_ms is not None
    assert totals.max_elapsed_ms >= totals.avg_latency_ms
    assert len(received) >= totals.sent
    assert all(not q.flags & dns.flags.RD for q in received)
    assert {q.question[0].name.to_text() for q in received} <= {f"host{i}.example." for i in range(4)}


def test_flood_mode_is_silent_and_bounded(make_config):
    reports = []

    class SlowExchange(DNSExchange):
        peak = 0

        async def exchange(self, message):
            SlowExchange.peak = max(SlowExchange.peak, self.inflight)
            await asyncio.sleep(0.02)

    config = make_config(concurrency=10, flood=True, max_inflight=50, display_interval_ms=50, duration=0.4)
    exchange = SlowExchange(config.resolver, max_inflight=config.max_inflight)
    runner = StressRunner(config, make_queries(10), exchange=exchange, report_callback=reports.append)

    totals = asyncio.run(runner.run())

    assert reports == []
    assert totals.sent > 0
    assert totals.errors == 0
    assert 0 < SlowExchange.peak <= 50
    assert exchange.inflight == 0


def test_runner_closes_exchange(make_config):
    exchange = FakeExchange(delay=0.001)
    runner = StressRunner(make_config(duration=0.1), make_queries(1), exchange=exchange)

    asyncio.run(runner.run())

    assert exchange.closed


def test_trailing_queries_are_not_sent(make_config):
    exchange = FakeExchange(delay=0.001)
    runner = StressRunner(make_config(concurrency=2, duration=0.2), make_queries(5), exchange=exchange)

    asyncio.run(runner.run())

    domains = {m.question[0].name.to_text() for m in exchange.messages}
    assert domains == {f"host{i}.example." for i in range(4)}


def test_summary_before_run_is_none(make_config):
    assert StressRunner(make_config(), make_queries(1)).summary() is None


def test_runner_rejects_invalid_domain_before_starting(make_config):
    queries = [Query("ok.example."), Query("bad..example.")]

    with pytest.raises(ValueError, match="invalid domain"):
        StressRunner(make_config(), queries)
