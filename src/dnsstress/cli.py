"""
Command-line interface for dnsstress.

Sends DNS requests as fast as possible to a given server and displays
the rate.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich import box

from . import __version__
from .models import StressConfig
from .output import ConsoleOutput, JSONLinesOutput
from .resolvers import RESOLVERS, ResolverAddressError, list_resolvers, parse_resolver
from .runner import StressRunner
from .workload import QueryError, QueryFileError, load_queries, queries_from_domains


def configure_logging(verbose: bool):
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@click.group()
@click.version_option(__version__)
def main():
    """
    dnsstress - DNS stress tool.

    Sends DNS requests as fast as possible to a given server and
    displays the rate.
    """
    pass


@main.command()
@click.argument("domains", nargs=-1)
@click.option(
    "--resolver", "-r",
    default="127.0.0.1:53",
    show_default=True,
    help="Resolver to test against (host[:port] or preset name)",
)
@click.option(
    "--concurrency", "-c",
    type=click.IntRange(min=1),
    default=50,
    show_default=True,
    help="Number of concurrent workers",
)
@click.option(
    "--interval", "-d",
    type=click.IntRange(min=1),
    default=1000,
    show_default=True,
    help="Update interval of the stats (in ms)",
)
@click.option(
    "--data-file",
    type=click.Path(path_type=Path),
    help="File of DNS requests, one '<domain> <record-type>' per line",
)
@click.option(
    "--random",
    "random_ids",
    is_flag=True,
    help="Use random request identifiers for each query",
)
@click.option(
    "--iterative", "-i",
    is_flag=True,
    help="Send iterative queries instead of recursive (to stress authoritative nameservers)",
)
@click.option(
    "--flood", "-f",
    is_flag=True,
    help="Don't wait for an answer before sending another",
)
@click.option(
    "--max-inflight",
    type=click.IntRange(min=0),
    default=0,
    show_default=True,
    help="Cap on unanswered requests in flood mode (0 = unbounded)",
)
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=2.0,
    show_default=True,
    help="Per-request timeout in seconds",
)
@click.option(
    "--duration",
    type=click.FloatRange(min=0, min_open=True),
    help="Stop after this many seconds (default: run until interrupted)",
)
@click.option(
    "--output", "-o",
    type=click.Path(path_type=Path),
    help="Append interval reports to this file as JSON lines",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Verbose logging",
)
def run(
    domains: tuple,
    resolver: str,
    concurrency: int,
    interval: int,
    data_file: Optional[Path],
    random_ids: bool,
    iterative: bool,
    flood: bool,
    max_inflight: int,
    timeout: float,
    duration: Optional[float],
    output: Optional[Path],
    verbose: bool,
):
    """
    Stress a DNS server.

    All DOMAINS are queried for A records, spread across the workers.

    Examples:

    \b
      # Hammer a local resolver
      dnsstress run -r 127.0.0.1:53 -c 1 example.com.

    \b
      # Stress an authoritative server from a query file
      dnsstress run -r 192.0.2.53 -i --data-file queries.txt

    \b
      # Flood for 30 seconds, at most 5000 unanswered requests
      dnsstress run -f --max-inflight 5000 --duration 30 -c 2 a.example. b.example.
    """
    configure_logging(verbose)
    console = ConsoleOutput()

    try:
        target = parse_resolver(resolver)
    except ResolverAddressError as e:
        console.print_error(f"Unable to parse the resolver address ({e})")
        sys.exit(2)

    if data_file is not None:
        try:
            queries = load_queries(data_file)
        except QueryFileError as e:
            console.print_error(f"Unable to load data file ({e})")
            sys.exit(2)
    else:
        try:
            queries = queries_from_domains(domains)
        except QueryError as e:
            console.print_error(f"Unable to use the given domains ({e})")
            sys.exit(2)

    # We need at least one target domain
    if not queries:
        click.echo(click.get_current_context().get_help(), err=True)
        sys.exit(1)

    config = StressConfig(
        resolver=target,
        concurrency=concurrency,
        display_interval_ms=interval,
        verbose=verbose,
        iterative=iterative,
        random_ids=random_ids,
        flood=flood,
        timeout=timeout,
        max_inflight=max_inflight,
        duration=duration,
        data_file=data_file,
    )

    sinks = []
    if not flood:
        sinks.append(console.print_interval)

    def on_report(report):
        for sink in sinks:
            sink(report)

    try:
        runner = StressRunner(
            config,
            queries,
            report_callback=on_report,
            start_callback=console.print_started,
        )
    except ValueError as e:
        console.print_error(str(e))
        sys.exit(2)

    jsonl = None
    if output is not None:
        try:
            jsonl = JSONLinesOutput.open(output)
        except OSError as e:
            console.print_error(f"Unable to open output file ({e})")
            sys.exit(2)
        sinks.append(jsonl.write)

    console.print_banner(config, len(queries))
    if flood:
        console.print_flood_notice()

    try:
        totals = asyncio.run(runner.run())
    except KeyboardInterrupt:
        totals = runner.summary()
    finally:
        if jsonl is not None:
            jsonl.close()

    if totals is not None:
        console.print_summary(totals, show_latency=not flood)


@main.command()
def resolvers():
    """List preset resolver names."""
    console = Console()
    table = Table(
        title="Preset Resolvers",
        box=box.ROUNDED,
        header_style="bold cyan",
    )

    table.add_column("Name", style="green")
    table.add_column("Address", style="cyan")
    table.add_column("Description")

    for name in sorted(list_resolvers()):
        target = RESOLVERS[name]
        table.add_row(name, target.address, target.name or "")

    console.print(table)


if __name__ == "__main__":
    main()
