"""
Query workload for stress runs.

Builds the query set from command-line domains or a data file and
splits it across workers.

Data file format, one query per line::

    www.apple.com.                  A
    frycomm.com.s9b2.psmtp.com.     MX
    170.44.153.187.in-addr.arpa.    PTR
"""

import logging
from pathlib import Path
from typing import Iterable

import dns.exception
import dns.name

from .models import Query, RecordType


logger = logging.getLogger(__name__)


class QueryError(ValueError):
    """Raised when a query cannot be sent as given."""


class QueryFileError(QueryError):
    """Raised when a query data file cannot be read or parsed."""


def check_domain(domain: str) -> str:
    """
    Check that a domain is a valid DNS name.

    Raises:
        QueryError: If dnspython rejects the name (empty or over-long labels)
    """
    try:
        dns.name.from_text(domain)
    except dns.exception.DNSException as e:
        raise QueryError(f"invalid domain {domain!r}: {e}") from e
    return domain


def queries_from_domains(
    domains: Iterable[str],
    record_type: RecordType = RecordType.A,
) -> list[Query]:
    """
    Build queries for explicit domains, all of one record type.

    Raises:
        QueryError: If a domain is not a valid DNS name
    """
    return [Query(check_domain(domain), record_type) for domain in domains]


def parse_query_line(line: str) -> Query:
    """
    Parse one ``<domain> <record-type>`` line.

    Raises:
        ValueError: If the line is malformed, the domain invalid or the
            type unknown
    """
    fields = line.split()
    if len(fields) != 2:
        raise ValueError(f"expected '<domain> <record-type>', got {line.strip()!r}")
    domain, type_text = fields
    return Query(check_domain(domain), RecordType.parse(type_text))


def load_queries(path: Path) -> list[Query]:
    """
    Load queries from a data file.

    Blank lines and lines starting with ``#`` are skipped.

    Args:
        path: Path to the data file

    Returns:
        Queries in file order

    Raises:
        QueryFileError: If the file is unreadable or a line is malformed
    """
    try:
        with open(path, "r") as f:
            lines = f.readlines()
    except OSError as e:
        raise QueryFileError(f"Unable to read data file {path} ({e})") from e

    queries = []
    for lineno, line in enumerate(lines, start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        try:
            queries.append(parse_query_line(stripped))
        except ValueError as e:
            raise QueryFileError(f"{path}:{lineno}: {e}") from e

    logger.debug("Loaded %d queries from %s", len(queries), path)
    return queries


def partition_queries(queries: list[Query], concurrency: int) -> list[list[Query]]:
    """
    Split queries evenly across workers.

    Each worker gets ``len(queries) // concurrency`` consecutive queries.
    The trailing ``len(queries) % concurrency`` queries are not assigned,
    and when there are fewer queries than workers every slice is empty.

    Args:
        queries: Full ordered query set
        concurrency: Number of workers

    Returns:
        One slice per worker, in worker order
    """
    if concurrency < 1:
        raise ValueError("concurrency must be at least 1")

    step = len(queries) // concurrency
    remaining = queries
    partitions = []
    for _ in range(concurrency):
        partitions.append(remaining[:step])
        remaining = remaining[step:]
    return partitions


def dropped_queries(queries: list[Query], concurrency: int) -> int:
    """Number of queries partition_queries leaves unassigned."""
    if len(queries) < concurrency:
        return len(queries)
    return len(queries) % concurrency
