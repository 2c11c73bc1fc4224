"""
Output formatting for stress runs.

Provides:
- Console: rich status lines, one per display interval
- JSON lines: one machine-readable record per interval report
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Optional, TextIO

from rich.console import Console
from rich.markup import escape
from rich.text import Text

from .models import IntervalReport, StressConfig


def format_latency(value_ms: Optional[float]) -> str:
    """Format a latency for display; None means no data."""
    if value_ms is None:
        return "n/a"
    return f"{value_ms:.2f}ms"


class ConsoleOutput:
    """Human-readable terminal output."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(highlight=False)

    def print_banner(self, config: StressConfig, query_count: int):
        self.console.print("[bold]dnsstress[/bold] - dns stress tool")
        self.console.print()
        mode = "iterative" if config.iterative else "recursive"
        self.console.print(
            f"Target [cyan]{escape(config.resolver.address)}[/cyan], "
            f"{query_count} queries, {mode}",
            style="dim",
        )

    def print_started(self, workers: int):
        self.console.print(f"Started {workers} workers.", style="dim")

    def print_flood_notice(self):
        self.console.print("Flooding mode, nothing will be printed.", style="yellow")

    @staticmethod
    def format_interval(report: IntervalReport) -> Text:
        """Build the status line for one interval."""
        line = Text()
        line.append(f"Requests sent: {report.rate:8.1f}r/s", style="green")
        line.append("  ")
        line.append(
            f"Errors: {report.errors}",
            style="red" if report.errors else "dim",
        )
        line.append(
            f"  (mean={format_latency(report.avg_latency_ms)}"
            f" / max={format_latency(report.max_elapsed_ms if report.sent else None)})"
        )
        return line

    def print_interval(self, report: IntervalReport):
        self.console.print(self.format_interval(report))

    def print_summary(self, report: IntervalReport, show_latency: bool = True):
        """Print run totals; latency is not observed in flood mode."""
        self.console.print()
        self.console.print("[bold]Summary[/bold]")
        self.console.print(f"  Duration:   {report.duration_s:.1f}s")
        self.console.print(f"  Sent:       {report.sent} ({report.rate:.1f}r/s)")
        self.console.print(f"  Errors:     {report.errors} ({report.error_rate:.2f}%)")
        if not show_latency:
            return
        self.console.print(f"  Mean:       {format_latency(report.avg_latency_ms)}")
        self.console.print(
            f"  Max:        {format_latency(report.max_elapsed_ms if report.sent else None)}"
        )

    def print_error(self, message: str):
        self.console.print(message, style="bold red", markup=False)


class JSONLinesOutput:
    """Appends interval reports to a file, one JSON object per line."""

    def __init__(self, stream: TextIO):
        self.stream = stream

    @classmethod
    def open(cls, path: Path) -> "JSONLinesOutput":
        return cls(open(path, "a"))

    @staticmethod
    def format(report: IntervalReport, timestamp: Optional[datetime] = None) -> str:
        data = {"timestamp": (timestamp or datetime.now()).isoformat()}
        data.update(report.to_dict())
        return json.dumps(data)

    def write(self, report: IntervalReport):
        self.stream.write(self.format(report) + "\n")
        self.stream.flush()

    def close(self):
        self.stream.close()
