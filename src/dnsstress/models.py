"""
Data models for dnsstress.

Defines the query set entries, the statistics messages exchanged between
workers and the aggregator, and the run configuration.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional


class RecordType(Enum):
    """DNS record types that can be queried."""
    A = "A"
    AAAA = "AAAA"
    ANY = "ANY"
    CNAME = "CNAME"
    MX = "MX"
    NS = "NS"
    PTR = "PTR"
    SOA = "SOA"
    SRV = "SRV"
    TXT = "TXT"

    @classmethod
    def parse(cls, text: str) -> "RecordType":
        """Parse a record type token (case-insensitive)."""
        try:
            return cls(text.strip().upper())
        except ValueError:
            raise ValueError(
                f"Unknown record type: {text!r}. "
                f"Available: {', '.join(t.value for t in cls)}"
            ) from None


class ExchangeStatus(Enum):
    """Outcome of a single DNS exchange."""
    SUCCESS = "success"
    TIMEOUT = "timeout"
    ERROR = "error"


@dataclass(frozen=True)
class Query:
    """A single (domain, record type) pair to send."""
    domain: str
    record_type: RecordType = RecordType.A


@dataclass(frozen=True)
class ResolverTarget:
    """Address of the DNS server under test."""
    host: str
    port: int = 53
    name: Optional[str] = None

    @property
    def address(self) -> str:
        """host:port, bracketing IPv6 literals."""
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class ExchangeResult:
    """Result of one request/response round trip."""
    status: ExchangeStatus
    elapsed_ms: float
    error: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.status == ExchangeStatus.SUCCESS


@dataclass(frozen=True)
class StatsMessage:
    """Batch summary emitted by a worker once per reporting window."""
    sent: int
    errors: int = 0
    elapsed_ms: float = 0.0
    max_elapsed_ms: float = 0.0

    def __post_init__(self):
        if self.sent < 0 or self.errors < 0:
            raise ValueError("sent and errors must be non-negative")
        if self.errors > self.sent:
            raise ValueError(
                f"errors ({self.errors}) cannot exceed sent ({self.sent})"
            )
        if self.elapsed_ms < 0 or self.max_elapsed_ms < 0:
            raise ValueError("elapsed times must be non-negative")


@dataclass(frozen=True)
class IntervalReport:
    """Aggregated statistics for one display interval (or a whole run)."""
    sent: int
    errors: int
    elapsed_ms: float
    max_elapsed_ms: float
    duration_s: float

    @property
    def rate(self) -> float:
        """Requests sent per second."""
        if self.duration_s <= 0:
            return 0.0
        return self.sent / self.duration_s

    @property
    def avg_latency_ms(self) -> Optional[float]:
        """Mean latency per request, or None when nothing was sent."""
        if self.sent == 0:
            return None
        return self.elapsed_ms / self.sent

    @property
    def error_rate(self) -> float:
        """Percentage of requests that failed."""
        if self.sent == 0:
            return 0.0
        return (self.errors / self.sent) * 100

    def to_dict(self) -> dict:
        avg = self.avg_latency_ms
        return {
            "sent": self.sent,
            "errors": self.errors,
            "duration_s": round(self.duration_s, 3),
            "rate": round(self.rate, 2),
            "error_rate_pct": round(self.error_rate, 2),
            "avg_latency_ms": None if avg is None else round(avg, 3),
            "max_latency_ms": round(self.max_elapsed_ms, 3),
        }


@dataclass(frozen=True)
class StressConfig:
    """
    Runtime options for a stress run.

    Built once at startup and passed explicitly to the runner, workers
    and aggregator.
    """
    resolver: ResolverTarget
    concurrency: int = 50
    display_interval_ms: int = 1000
    display_step: int = 5
    verbose: bool = False
    iterative: bool = False
    random_ids: bool = False
    flood: bool = False
    timeout: float = 2.0
    max_inflight: int = 0  # 0 = unbounded in flood mode
    duration: Optional[float] = None  # None = run until killed
    data_file: Optional[Path] = None

    def __post_init__(self):
        if self.concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        if self.display_interval_ms <= 0:
            raise ValueError("display interval must be positive")
        if self.display_step < 1:
            raise ValueError("display step must be at least 1")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.max_inflight < 0:
            raise ValueError("max_inflight cannot be negative")
        if self.duration is not None and self.duration <= 0:
            raise ValueError("duration must be positive")

    @property
    def display_interval(self) -> float:
        """Display interval in seconds."""
        return self.display_interval_ms / 1000
