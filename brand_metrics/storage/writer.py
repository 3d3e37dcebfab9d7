"""
File I/O utilities for Brand Metrics.

Reads and writes the JSON Lines files the CLI batch driver works with: raw
response records in, ScopedExtraction records out, and back in again for
aggregation. The persistence layer of the surrounding product owns real
storage; these files are the hand-off format.

Key features:
- UTF-8 encoding for all text files
- One JSON object per line, blank lines skipped
- Line-numbered RecordFormatError for malformed records
- Pretty-printed JSON (indent=2) for single documents

Example:
    >>> write_extractions("extractions.jsonl", records)
    >>> records = read_extractions("extractions.jsonl")
"""

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from brand_metrics.aggregator.models import ScopedExtraction
from brand_metrics.exceptions import RecordFormatError

logger = logging.getLogger(__name__)


def write_json(filepath: str | Path, data: dict | list) -> None:
    """
    Write data to a JSON file with UTF-8 encoding.

    Raises:
        OSError: If file cannot be written (permissions, disk full)
        TypeError: If data is not JSON-serializable
    """
    try:
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            # Add newline at end of file for POSIX compliance
            f.write("\n")
        logger.debug(f"Wrote JSON file: {filepath}")
    except TypeError as e:
        logger.error(f"Cannot serialize data to JSON: {e}", exc_info=True)
        raise TypeError(
            f"Cannot write JSON to '{filepath}': Data is not JSON-serializable. {e}"
        ) from e
    except OSError as e:
        logger.error(f"Failed to write JSON file: {filepath}", exc_info=True)
        raise OSError(
            f"Cannot write JSON file '{filepath}': {e}. "
            f"Check disk space and permissions."
        ) from e


def write_jsonl(filepath: str | Path, rows: Iterable[dict[str, Any]]) -> int:
    """
    Write one JSON object per line.

    Returns:
        Number of rows written

    Raises:
        OSError: If file cannot be written
        TypeError: If a row is not JSON-serializable
    """
    count = 0
    try:
        with open(filepath, "w", encoding="utf-8") as f:
            for row in rows:
                f.write(json.dumps(row, ensure_ascii=False))
                f.write("\n")
                count += 1
    except OSError as e:
        logger.error(f"Failed to write JSONL file: {filepath}", exc_info=True)
        raise OSError(
            f"Cannot write JSONL file '{filepath}': {e}. "
            f"Check disk space and permissions."
        ) from e

    logger.debug(f"Wrote {count} rows to {filepath}")
    return count


def read_jsonl(filepath: str | Path) -> list[dict[str, Any]]:
    """
    Read a JSON Lines file into a list of objects.

    Raises:
        FileNotFoundError: If the file does not exist
        RecordFormatError: If a line is not valid JSON or not an object
    """
    rows = []
    with open(filepath, encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                row = json.loads(line)
            except json.JSONDecodeError as e:
                raise RecordFormatError(
                    f"{filepath}:{line_number}: invalid JSON: {e.msg}"
                ) from e
            if not isinstance(row, dict):
                raise RecordFormatError(
                    f"{filepath}:{line_number}: expected a JSON object, "
                    f"got: {type(row).__name__}"
                )
            rows.append(row)

    logger.debug(f"Read {len(rows)} rows from {filepath}")
    return rows


def write_extractions(
    filepath: str | Path, records: Iterable[ScopedExtraction]
) -> int:
    """Write ScopedExtraction records as JSON Lines."""
    count = write_jsonl(filepath, (record.to_dict() for record in records))
    logger.info(f"Wrote {count} extractions to {filepath}")
    return count


def read_extractions(filepath: str | Path) -> list[ScopedExtraction]:
    """
    Read ScopedExtraction records written by write_extractions().

    Raises:
        FileNotFoundError: If the file does not exist
        RecordFormatError: If a record is malformed
    """
    records = []
    for index, row in enumerate(read_jsonl(filepath), start=1):
        try:
            records.append(ScopedExtraction.from_dict(row))
        except (KeyError, TypeError, ValueError) as e:
            raise RecordFormatError(
                f"{filepath}: record {index}: malformed extraction ({e!r})"
            ) from e

    logger.info(f"Read {len(records)} extractions from {filepath}")
    return records
