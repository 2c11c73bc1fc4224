"""
dnsstress - DNS resolver stress tool.

Sends DNS queries as fast as possible to a target server from many
concurrent workers and reports throughput, errors and latency.
"""

__version__ = "1.0.0"

from .models import Query, RecordType, ResolverTarget, StatsMessage, StressConfig
from .query_engine import DNSExchange
from .runner import StressRunner

__all__ = [
    "__version__",
    "Query",
    "RecordType",
    "ResolverTarget",
    "StatsMessage",
    "StressConfig",
    "DNSExchange",
    "StressRunner",
]
