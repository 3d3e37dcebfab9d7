"""
Aggregate export utilities for Brand Metrics.

Exports ScopeAggregate results to formats for external analysis.

Key features:
- JSON format for programmatic processing (full nested structure)
- CSV format for spreadsheet analysis (one row per scope and brand)
- UTF-8 encoding for international characters

Example:
    >>> export_aggregates_csv("./metrics.csv", aggregates)
    >>> export_aggregates_json("./metrics.json", aggregates)
"""

import csv
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from brand_metrics.aggregator.models import RANKED_METRICS, ScopeAggregate

from .writer import write_json

logger = logging.getLogger(__name__)

CSV_FIELDNAMES = (
    [
        "scope",
        "scope_value",
        "date_from",
        "date_to",
        "total_responses",
        "brand_name",
    ]
    + [
        f"{metric}_{part}"
        for metric in RANKED_METRICS
        for part in ("value", "rank", "rank_change")
    ]
    + [
        "sentiment_share",
        "sentiment_positive",
        "sentiment_negative",
        "sentiment_neutral",
        "appearances",
        "brand_hyperlinks",
        "owned_citations",
    ]
)


def aggregate_rows(aggregates: Sequence[ScopeAggregate]) -> list[dict[str, Any]]:
    """Flatten aggregates into one dict per (scope, brand), keyed by CSV_FIELDNAMES."""
    rows = []
    for aggregate in aggregates:
        window = aggregate.date_range.to_dict() if aggregate.date_range else {}
        for brand in aggregate.brands:
            row: dict[str, Any] = {
                "scope": aggregate.scope.scope,
                "scope_value": aggregate.scope.scope_value or "",
                "date_from": window.get("date_from", ""),
                "date_to": window.get("date_to", ""),
                "total_responses": aggregate.total_responses,
                "brand_name": brand.brand_name,
            }
            for metric in RANKED_METRICS:
                ranked = getattr(brand, metric)
                row[f"{metric}_value"] = ranked.value
                row[f"{metric}_rank"] = ranked.rank
                # Empty cell, not 0, when there is no baseline
                row[f"{metric}_rank_change"] = (
                    "" if ranked.rank_change is None else ranked.rank_change
                )
            row.update(
                {
                    "sentiment_share": brand.sentiment_share,
                    "sentiment_positive": brand.sentiment_breakdown["positive"],
                    "sentiment_negative": brand.sentiment_breakdown["negative"],
                    "sentiment_neutral": brand.sentiment_breakdown["neutral"],
                    "appearances": brand.appearances,
                    "brand_hyperlinks": brand.brand_hyperlinks,
                    "owned_citations": brand.owned_citations,
                }
            )
            rows.append(row)
    return rows


def export_aggregates_csv(
    output_path: str | Path, aggregates: Sequence[ScopeAggregate]
) -> int:
    """
    Export aggregates to a CSV file, one row per scope and brand.

    Writes the header even when there are no rows.

    Returns:
        Number of rows exported

    Raises:
        OSError: If file cannot be written
    """
    rows = aggregate_rows(aggregates)
    logger.info(f"Exporting aggregates to CSV: {output_path}")

    if not rows:
        logger.warning("No aggregated brand metrics to export")

    try:
        with open(output_path, "w", encoding="utf-8", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=CSV_FIELDNAMES)
            writer.writeheader()
            writer.writerows(rows)
    except OSError as e:
        logger.error(f"File write error: {e}", exc_info=True)
        raise

    logger.info(f"Exported {len(rows)} rows to {output_path}")
    return len(rows)


def export_aggregates_json(
    output_path: str | Path, aggregates: Sequence[ScopeAggregate]
) -> int:
    """
    Export aggregates to a JSON file as a list of scope objects.

    Returns:
        Number of scopes exported

    Raises:
        OSError: If file cannot be written
    """
    logger.info(f"Exporting aggregates to JSON: {output_path}")
    write_json(output_path, [aggregate.to_dict() for aggregate in aggregates])
    logger.info(f"Exported {len(aggregates)} scopes to {output_path}")
    return len(aggregates)
