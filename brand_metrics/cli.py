"""
CLI entrypoint for Brand Metrics.

Batch driver around the library: extract metrics from a JSON Lines file of
stored responses, then aggregate those extractions into ranked brand metrics.

Provides a dual-mode command-line interface with:
- Human-friendly output: Rich spinners, tables, colored text
- Agent-friendly output: Structured JSON for automation
- Quiet mode: Tab-separated minimal output for shell scripts

Commands:
    extract: Extract per-response metrics from raw response records
    aggregate: Aggregate extractions into ranked brand metrics
    validate: Validate configuration without processing data

Exit codes:
    0: Success
    1: Configuration error (missing file, invalid YAML, failed validation)
    2: Input/data error (unreadable records, malformed scope or date window)

Examples:
    brand-metrics extract --input responses.jsonl --output extractions.jsonl
    brand-metrics aggregate --input extractions.jsonl --scope platform --scope-value openai
    brand-metrics aggregate --input extractions.jsonl --from 2025-11-08 --to 2025-11-15 --with-previous
    brand-metrics validate --config metrics.config.yaml --format json
"""

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as package_version
from pathlib import Path
from typing import Any

import typer
from rich.traceback import install as install_rich_traceback

from brand_metrics.aggregator.aggregator import MetricsAggregator, aggregate_all_scopes
from brand_metrics.aggregator.models import AggregationScope, DateRange, ScopedExtraction
from brand_metrics.config.loader import load_config_or_default
from brand_metrics.config.schema import MetricsConfig
from brand_metrics.exceptions import (
    AggregationError,
    ConfigurationError,
    RecordFormatError,
)
from brand_metrics.extractor.batch import ExtractionTask, extract_batch
from brand_metrics.storage.exporter import (
    export_aggregates_csv,
    export_aggregates_json,
)
from brand_metrics.storage.writer import read_extractions, read_jsonl, write_extractions
from brand_metrics.utils.console import (
    error,
    info,
    output_mode,
    print_final_summary,
    print_metrics_table,
    spinner,
    success,
    warning,
)
from brand_metrics.utils.logging import setup_logging
from brand_metrics.utils.time import parse_timestamp

# Install Rich tracebacks for better error messages
install_rich_traceback(show_locals=False)

# Exit codes
EXIT_SUCCESS = 0  # Command completed
EXIT_CONFIG_ERROR = 1  # Config missing or invalid
EXIT_DATA_ERROR = 2  # Input records, scope or window invalid

# Create Typer app
app = typer.Typer(
    name="brand-metrics",
    help="Deterministic brand visibility metrics from model responses",
    add_completion=False,
)


def _set_output(format: str, quiet: bool, verbose: bool) -> None:
    output_mode.format = format
    output_mode.quiet = quiet
    # JSON logs would interleave with Rich output in human mode
    setup_logging(verbose=verbose, quiet_logs=output_mode.is_human())


def _load_config(config: Path | None) -> MetricsConfig:
    try:
        with spinner("Loading configuration..."):
            return load_config_or_default(config)
    except ConfigurationError as e:
        error(f"Configuration error: {e}")
        output_mode.flush_json()
        raise typer.Exit(EXIT_CONFIG_ERROR)


def _data_error(message: str) -> typer.Exit:
    error(message)
    output_mode.flush_json()
    return typer.Exit(EXIT_DATA_ERROR)


def read_response_records(
    path: Path, default_brands: list[str] | None = None
) -> tuple[list[ExtractionTask], list[dict[str, Any]]]:
    """
    Read raw response records for extraction.

    Each line is an object with "response" and optional "brand_names",
    "response_id", "prompt_id", "platform", "topic", "persona" and
    "tested_at". Records without brand_names use default_brands.

    Returns:
        (tasks, metadata) aligned by index

    Raises:
        RecordFormatError: If tested_at cannot be parsed or brand_names is
            not a list
    """
    tasks = []
    metadata = []
    for index, row in enumerate(read_jsonl(path), start=1):
        brand_names = row.get("brand_names", default_brands or [])
        if not isinstance(brand_names, list):
            raise RecordFormatError(
                f"{path}: record {index}: brand_names must be a list"
            )

        tested_at = row.get("tested_at")
        try:
            tested_at = parse_timestamp(tested_at) if tested_at else None
        except (ValueError, AttributeError) as e:
            raise RecordFormatError(f"{path}: record {index}: {e}") from e

        tasks.append(ExtractionTask(row.get("response"), tuple(brand_names)))
        metadata.append(
            {
                "response_id": row.get("response_id"),
                "prompt_id": row.get("prompt_id"),
                "platform": row.get("platform"),
                "topic": row.get("topic"),
                "persona": row.get("persona"),
                "tested_at": tested_at,
            }
        )
    return tasks, metadata


@app.command()
def extract(
    input: Path = typer.Option(
        ...,
        "--input",
        "-i",
        help="JSON Lines file of raw response records",
    ),
    output: Path = typer.Option(
        ...,
        "--output",
        "-o",
        help="JSON Lines file to write extractions to",
    ),
    config: Path = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to YAML configuration file (defaults if omitted)",
    ),
    brand: list[str] = typer.Option(
        None,
        "--brand",
        "-b",
        help="Brand to track when a record has no brand_names (repeatable)",
    ),
    workers: int = typer.Option(
        None,
        "--workers",
        "-w",
        min=1,
        help="Worker processes (defaults to config, then CPU count)",
    ),
    format: str = typer.Option(
        "text",
        "--format",
        "-f",
        help="Output format: 'text' (human-friendly) or 'json' (machine-readable)",
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Minimal output"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """
    Extract per-response brand metrics from raw response records.

    Exit codes:
      0: Extractions written
      1: Configuration error
      2: Input records unreadable or output not writable
    """
    _set_output(format, quiet, verbose)
    metrics_config = _load_config(config)

    try:
        tasks, metadata = read_response_records(input, brand)
    except FileNotFoundError:
        raise _data_error(f"Input file not found: {input}")
    except RecordFormatError as e:
        raise _data_error(f"Invalid input record: {e}")

    if not tasks:
        warning(f"No response records in {input}")

    with spinner(f"Extracting metrics from {len(tasks)} responses..."):
        results = extract_batch(
            tasks, metrics_config, max_workers=workers, batch_id=input.name
        )

    records = [
        ScopedExtraction(extraction=result, **meta)
        for result, meta in zip(results, metadata, strict=True)
    ]

    try:
        written = write_extractions(output, records)
    except OSError as e:
        raise _data_error(f"Cannot write extractions: {e}")

    mentioned = sum(
        1 for r in records if any(b.mentioned for b in r.extraction.brand_metrics)
    )
    success(f"Wrote {written} extractions to {output}")
    print_final_summary(
        "Extraction Complete",
        {
            "responses": written,
            "responses_with_mentions": mentioned,
            "output": str(output),
        },
    )
    raise typer.Exit(EXIT_SUCCESS)


@app.command()
def aggregate(
    input: Path = typer.Option(
        ...,
        "--input",
        "-i",
        help="JSON Lines file of extractions (from 'extract')",
    ),
    scope: str = typer.Option(
        "overall",
        "--scope",
        "-s",
        help="overall, platform, topic, persona or prompt",
    ),
    scope_value: str = typer.Option(
        None,
        "--scope-value",
        help="Value selecting records for non-overall scopes",
    ),
    all_scopes: bool = typer.Option(
        False,
        "--all-scopes",
        help="Aggregate overall and every scope value present in the input",
    ),
    date_from: str = typer.Option(
        None, "--from", help="Window start, inclusive (ISO 8601, e.g. 2025-11-08)"
    ),
    date_to: str = typer.Option(
        None, "--to", help="Window end, exclusive (ISO 8601)"
    ),
    with_previous: bool = typer.Option(
        False,
        "--with-previous",
        help="Compute rank change against the preceding window of equal length",
    ),
    brand: list[str] = typer.Option(
        None,
        "--brand",
        "-b",
        help="Brand display order (repeatable); others follow in first-seen order",
    ),
    output: Path = typer.Option(
        None,
        "--output",
        "-o",
        help="Export to .json or .csv",
    ),
    config: Path = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to YAML configuration file (defaults if omitted)",
    ),
    format: str = typer.Option(
        "text",
        "--format",
        "-f",
        help="Output format: 'text' (human-friendly) or 'json' (machine-readable)",
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Minimal output"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """
    Aggregate extractions into ranked brand metrics.

    Exit codes:
      0: Metrics computed
      1: Configuration error
      2: Input unreadable, malformed scope or window, or export failed
    """
    _set_output(format, quiet, verbose)
    metrics_config = _load_config(config)

    if output is not None and output.suffix.lower() not in (".json", ".csv"):
        raise _data_error(f"Output must be a .json or .csv file, got: {output}")

    try:
        date_range = None
        if date_from or date_to:
            if not (date_from and date_to):
                raise _data_error("--from and --to must be given together")
            date_range = DateRange.from_strings(date_from, date_to)
        if with_previous and date_range is None:
            raise _data_error("--with-previous requires --from and --to")

        target = None if all_scopes else AggregationScope(scope, scope_value)
        records = read_extractions(input)
    except FileNotFoundError:
        raise _data_error(f"Input file not found: {input}")
    except (AggregationError, RecordFormatError) as e:
        raise _data_error(str(e))

    with spinner(f"Aggregating {len(records)} extractions..."):
        if target is None:
            aggregates = aggregate_all_scopes(
                records,
                date_range,
                previous_records=records if with_previous else None,
                brand_names=brand,
                config=metrics_config,
            )
        else:
            aggregator = MetricsAggregator(metrics_config)
            baseline = None
            if with_previous:
                baseline = aggregator.summarize(
                    records, target, date_range.previous(), brand_names=brand
                )
            aggregates = [
                aggregator.summarize(
                    records, target, date_range, previous=baseline, brand_names=brand
                )
            ]

    for scope_aggregate in aggregates:
        if scope_aggregate.total_responses == 0:
            warning(f"No extractions in scope {scope_aggregate.scope.label}")
        print_metrics_table(scope_aggregate.to_dict())

    if output is not None:
        try:
            if output.suffix.lower() == ".csv":
                rows = export_aggregates_csv(output, aggregates)
            else:
                rows = export_aggregates_json(output, aggregates)
        except OSError as e:
            raise _data_error(f"Cannot write export: {e}")
        info(f"Exported {rows} rows to {output}")

    print_final_summary(
        "Aggregation Complete",
        {
            "extractions": len(records),
            "scopes": len(aggregates),
            "output": str(output) if output else "",
        },
    )
    raise typer.Exit(EXIT_SUCCESS)


@app.command()
def validate(
    config: Path = typer.Option(
        ...,
        "--config",
        "-c",
        help="Path to YAML configuration file",
    ),
    format: str = typer.Option(
        "text",
        "--format",
        "-f",
        help="Output format: 'text' or 'json'",
    ),
):
    """
    Validate configuration file without processing data.

    Exit codes:
      0: Configuration is valid
      1: Configuration is invalid
    """
    output_mode.format = format
    output_mode.quiet = False

    try:
        with spinner("Validating configuration..."):
            metrics_config = load_config_or_default(config)
    except ConfigurationError as e:
        error(f"Validation failed: {e}")
        if output_mode.is_agent():
            output_mode.add_json("valid", False)
            output_mode.add_json("error_type", type(e).__name__)
            output_mode.flush_json()
        raise typer.Exit(EXIT_CONFIG_ERROR)

    citations = metrics_config.citations
    success("Configuration is valid")
    info(f"Brand domain tables: {len(citations.brand_domains)}")
    info(f"Competitor domain tables: {len(citations.competitor_domains)}")
    info(f"Social domains: {len(citations.social_domains)}")
    info(f"Fuzzy threshold: {metrics_config.detection.fuzzy_threshold}")

    if output_mode.is_agent():
        output_mode.add_json("valid", True)
        output_mode.add_json("brand_domain_tables", len(citations.brand_domains))
        output_mode.add_json(
            "competitor_domain_tables", len(citations.competitor_domains)
        )
        output_mode.add_json("social_domains", len(citations.social_domains))
        output_mode.flush_json()

    raise typer.Exit(EXIT_SUCCESS)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
    ),
):
    """
    Brand Metrics - deterministic brand visibility analytics.

    Extract per-response brand metrics from model answers and aggregate
    them into ranked, comparable scores.

    Use 'brand-metrics COMMAND --help' for detailed command documentation.
    """
    if version:
        from rich.console import Console

        console = Console()
        console.print(f"[bold cyan]brand-metrics[/bold cyan] version {_read_version()}")
        raise typer.Exit(EXIT_SUCCESS)

    if ctx.invoked_subcommand is None:
        from rich.console import Console

        console = Console()
        console.print("[yellow]Use --help to see available commands[/yellow]")
        console.print()
        console.print("Commands:")
        console.print("  extract    Extract per-response metrics from responses")
        console.print("  aggregate  Aggregate extractions into ranked metrics")
        console.print("  validate   Validate configuration")


def _read_version() -> str:
    """Read version from installed package metadata."""
    try:
        return package_version("brand-metrics")
    except PackageNotFoundError:
        # Running from a source checkout without installed metadata
        return "0.1.0"


if __name__ == "__main__":
    app()
