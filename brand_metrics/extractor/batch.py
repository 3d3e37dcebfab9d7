"""
Batch extraction across a bounded process pool.

Extraction is CPU-bound string work with no shared state, so a batch of
stored responses fans out across a ProcessPoolExecutor sized to the
available cores. Each worker process builds its MetricsExtractor once from
the pickled config. Results come back in input order.

Example:
    >>> tasks = [ExtractionTask("Acme leads.", ("Acme",)), ExtractionTask("", ("Acme",))]
    >>> [r.brand_metrics[0].mentioned for r in extract_batch(tasks, max_workers=1)]
    [True, False]
"""

import logging
import os
import time
from collections.abc import Iterable
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from typing import Any

from ..config.schema import MetricsConfig
from ..utils.logging import log_with_context
from .parser import ExtractionResult, MetricsExtractor

logger = logging.getLogger(__name__)

# Per-process extractor, set by _init_worker
_worker_extractor: MetricsExtractor | None = None


@dataclass(frozen=True)
class ExtractionTask:
    """
    One unit of batch work.

    Attributes:
        response: Raw response text
        brand_names: Brands to track in this response
    """

    response: Any
    brand_names: tuple[str, ...]


def _init_worker(config: MetricsConfig) -> None:
    global _worker_extractor
    _worker_extractor = MetricsExtractor(config)


def _extract_task(task: ExtractionTask) -> ExtractionResult:
    return _worker_extractor.extract(task.response, list(task.brand_names))


def resolve_worker_count(
    config: MetricsConfig, max_workers: int | None = None
) -> int:
    """
    Pick the pool size: explicit argument, then config, then os.cpu_count().

    Raises:
        ValueError: If max_workers < 1
    """
    if max_workers is not None and max_workers < 1:
        raise ValueError(f"max_workers must be >= 1, got: {max_workers}")
    return max_workers or config.batch.max_workers or os.cpu_count() or 1


def extract_batch(
    tasks: Iterable[ExtractionTask],
    config: MetricsConfig | None = None,
    max_workers: int | None = None,
    batch_id: str | None = None,
) -> list[ExtractionResult]:
    """
    Extract metrics for many responses, preserving input order.

    Runs inline when one worker is requested or there is at most one task.

    Args:
        tasks: Responses and their brand lists
        config: Metrics configuration (production defaults if None)
        max_workers: Process count (config or cpu count if None)
        batch_id: Optional identifier attached to log records

    Returns:
        One ExtractionResult per task, in input order
    """
    config = config or MetricsConfig()
    tasks = list(tasks)
    workers = min(resolve_worker_count(config, max_workers), max(len(tasks), 1))

    start = time.perf_counter()
    if workers == 1:
        extractor = MetricsExtractor(config)
        results = [
            extractor.extract(task.response, list(task.brand_names)) for task in tasks
        ]
    else:
        with ProcessPoolExecutor(
            max_workers=workers, initializer=_init_worker, initargs=(config,)
        ) as executor:
            results = list(
                executor.map(_extract_task, tasks, chunksize=config.batch.chunksize)
            )

    log_with_context(
        logger,
        logging.INFO,
        f"Extracted {len(results)} responses",
        context={
            "workers": workers,
            "elapsed_seconds": round(time.perf_counter() - start, 3),
        },
        batch_id=batch_id,
    )
    return results
