"""
Rich console utilities for dual-mode CLI output.

Human Mode (--format text):
    - Rich spinners and colored tables
    - ANSI colors and Unicode symbols

Agent Mode (--format json):
    - Structured JSON output to stdout
    - No ANSI codes or spinners

Quiet Mode (--quiet):
    - Minimal output
    - Tab-separated values

Examples:
    >>> from brand_metrics.utils.console import output_mode, spinner, success
    >>> output_mode.format = "text"
    >>> with spinner("Loading..."):
    ...     config = load_config("metrics.config.yaml")
    >>> success("Config loaded successfully")
"""

from __future__ import annotations

import json
import sys
from contextlib import contextmanager
from typing import Any

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table


class OutputMode:
    """
    Output mode configuration for dual-mode CLI.

    Attributes:
        format: Output format - "text" (human) or "json" (agent)
        quiet: If True, suppress non-essential output
    """

    def __init__(self, format_type: str = "text", quiet: bool = False):
        """
        Initialize output mode.

        Raises:
            ValueError: If format_type is not "text" or "json"
        """
        if format_type not in ["text", "json"]:
            raise ValueError(f"Invalid format: {format_type}. Must be 'text' or 'json'")

        self.format = format_type
        self.quiet = quiet
        self._json_buffer: dict[str, Any] = {}

    def is_human(self) -> bool:
        return self.format == "text"

    def is_agent(self) -> bool:
        return self.format == "json"

    def add_json(self, key: str, value: Any) -> None:
        """Add key-value pair to the JSON buffer flushed by flush_json()."""
        self._json_buffer[key] = value

    def append_json(self, key: str, value: Any) -> None:
        """Append value to a list under key in the JSON buffer."""
        self._json_buffer.setdefault(key, []).append(value)

    def flush_json(self) -> None:
        """
        Output buffered JSON to stdout and clear buffer.

        Only outputs in agent mode. In human mode, this is a no-op.
        """
        if self.is_agent() and self._json_buffer:
            json.dump(self._json_buffer, sys.stdout, indent=2)
            sys.stdout.write("\n")
            sys.stdout.flush()
            self._json_buffer.clear()


# Global output mode instance (set by CLI flags)
output_mode = OutputMode()

# Global Rich console instances for human mode
console = Console()  # stdout
console_err = Console(stderr=True)  # stderr


@contextmanager
def spinner(message: str):
    """Show a Rich spinner in human mode; silent otherwise."""
    if output_mode.is_human() and not output_mode.quiet:
        with console.status(f"[bold blue]{message}", spinner="dots") as status:
            yield status
    else:
        yield None


def success(message: str) -> None:
    """
    Print a success message.

    Human mode: Green checkmark with message
    Agent mode: Buffer to JSON
    """
    if output_mode.is_human():
        if not output_mode.quiet:
            console.print(f"[green]✓[/green] {message}")
    elif output_mode.is_agent():
        output_mode.add_json("status", "success")
        output_mode.add_json("message", message)


def error(message: str) -> None:
    """
    Print an error message.

    Human mode: Red X with message to stderr
    Agent mode: Buffer to JSON
    """
    if output_mode.is_human():
        console_err.print(f"[red]✗[/red] {message}", style="red")
    elif output_mode.is_agent():
        output_mode.add_json("status", "error")
        output_mode.add_json("error", message)


def warning(message: str) -> None:
    """Print a warning message (yellow in human mode, buffered in agent mode)."""
    if output_mode.is_human():
        if not output_mode.quiet:
            console.print(f"[yellow]⚠[/yellow] {message}", style="yellow")
    elif output_mode.is_agent():
        output_mode.add_json("warning", message)


def info(message: str) -> None:
    """Print an info message in human mode only."""
    if output_mode.is_human() and not output_mode.quiet:
        console.print(f"[blue]ℹ[/blue] {message}")


def _format_change(rank_change: int | None) -> str:
    if rank_change is None:
        return "[dim]-[/dim]"
    if rank_change < 0:
        return f"[green]▲{-rank_change}[/green]"
    if rank_change > 0:
        return f"[red]▼{rank_change}[/red]"
    return "[dim]=[/dim]"


def print_metrics_table(aggregate: dict[str, Any]) -> None:
    """
    Print ranked brand metrics for one scope.

    Takes ScopeAggregate.to_dict() output.

    Human mode: Rich table, one row per brand
    Agent mode: Buffer under "aggregates"
    Quiet mode: Tab-separated brand, visibility and rank
    """
    if output_mode.is_agent():
        output_mode.append_json("aggregates", aggregate)
        return

    scope = aggregate["scope"]
    if aggregate.get("scope_value"):
        scope = f"{scope}:{aggregate['scope_value']}"

    if output_mode.quiet:
        for brand in aggregate["brands"]:
            visibility = brand["visibility_score"]
            print(f"{scope}\t{brand['brand_name']}\t{visibility['value']}\t{visibility['rank']}")
        return

    table = Table(
        title=f"Brand Metrics ({scope}, {aggregate['total_responses']} responses)",
        box=box.ROUNDED,
    )
    table.add_column("Brand", style="cyan", no_wrap=True)
    table.add_column("Visibility", justify="right")
    table.add_column("Citation Share", justify="right")
    table.add_column("Avg Position", justify="right")
    table.add_column("Depth", justify="right")
    table.add_column("Sentiment", justify="right")
    table.add_column("Share of Voice", justify="right")
    table.add_column("1st/2nd/3rd", justify="center")

    def cell(metric: dict[str, Any], suffix: str = "") -> str:
        return (
            f"{metric['value']}{suffix} (#{metric['rank']}) "
            f"{_format_change(metric['rank_change'])}"
        )

    for brand in aggregate["brands"]:
        table.add_row(
            brand["brand_name"],
            cell(brand["visibility_score"], "%"),
            cell(brand["citation_share"], "%"),
            cell(brand["average_position"]),
            cell(brand["depth_of_mention"]),
            cell(brand["sentiment_score"]),
            cell(brand["share_of_voice"], "%"),
            f"{brand['first_position_count']['value']}/"
            f"{brand['second_position_count']['value']}/"
            f"{brand['third_position_count']['value']}",
        )

    console.print(table)


def print_final_summary(title: str, stats: dict[str, Any]) -> None:
    """
    Print final command statistics.

    Human mode: Rich panel
    Agent mode: Add stats to the JSON buffer and flush it
    Quiet mode: Tab-separated values
    """
    if output_mode.is_agent():
        for key, value in stats.items():
            output_mode.add_json(key, value)
        output_mode.flush_json()
        return

    if output_mode.quiet:
        print("\t".join(str(value) for value in stats.values()))
        return

    summary_text = "\n".join(
        f"[bold]{key.replace('_', ' ').title()}:[/bold] {value}"
        for key, value in stats.items()
    )
    console.print(
        Panel(
            summary_text,
            title=f"[bold green]✓ {title}[/bold green]",
            border_style="green",
            box=box.ROUNDED,
        )
    )
