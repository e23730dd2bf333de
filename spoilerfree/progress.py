"""Resumable batch processing.

Long jobs (transcript extraction, bulk scraping) run a batch at a time and
record every finished item in a progress file, so a rerun picks up where
the last one stopped.
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Callable, Optional

from spoilerfree.errors import RateLimitedError
from spoilerfree.store import dump_json, utc_now_iso

logger = logging.getLogger(__name__)


def empty_progress() -> dict:
    return {
        "processedIds": [],
        "lastProcessedIndex": -1,
        "startedAt": utc_now_iso(),
        "batches": [],
    }


class ProgressTracker:
    """Progress file: processed ids, last index and a log of batch summaries."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.data = self.load()

    def load(self) -> dict:
        if not self.path.exists():
            return empty_progress()
        data = json.loads(self.path.read_text(encoding="utf-8"))
        for key, value in empty_progress().items():
            data.setdefault(key, value)
        return data

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(dump_json(self.data), encoding="utf-8")

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
        self.data = empty_progress()

    @property
    def processed_ids(self) -> list[str]:
        return self.data["processedIds"]

    def is_processed(self, item_id: str) -> bool:
        return item_id in self.data["processedIds"]

    def mark_processed(self, item_id: str, index: Optional[int] = None) -> None:
        """Record one finished item and write the file immediately."""
        if item_id not in self.data["processedIds"]:
            self.data["processedIds"].append(item_id)
        if index is not None:
            self.data["lastProcessedIndex"] = max(self.data["lastProcessedIndex"], index)
        self.save()

    def record_batch(self, summary: dict) -> None:
        self.data["batches"].append(summary)
        self.save()

    def remaining(self, items: list, key: Callable) -> list:
        return [item for item in items if not self.is_processed(key(item))]


def _process_with_retry(process, item, rate_limit_sleep: float, sleep):
    try:
        return process(item)
    except RateLimitedError:
        logger.warning("Rate limited, waiting %ss before retrying", rate_limit_sleep)
        sleep(rate_limit_sleep)
        return process(item)


def run_batch(items: list, key: Callable, process: Callable, tracker: ProgressTracker,
              batch_size: int = 3, delay: float = 5.0, rate_limit_sleep: float = 60.0,
              sleep=time.sleep) -> dict:
    """Process the next ``batch_size`` unprocessed items.

    ``process(item)`` returns a result dict or raises. Failures are logged,
    recorded in the summary and left unprocessed so the next run retries
    them. A rate limit is waited out once before the item counts as failed.

    Returns:
        batch summary with successful/failed counts, results, errors and
        the number of items still remaining after this batch
    """
    remaining = tracker.remaining(items, key)
    batch = remaining[:batch_size]
    batch_number = len(tracker.data["batches"]) + 1
    positions = {key(item): i for i, item in enumerate(items)}

    results, errors = [], []
    for i, item in enumerate(batch):
        item_id = key(item)
        logger.info("[%d/%d] [batch %d] %s", positions[item_id] + 1, len(items), batch_number, item_id)
        try:
            result = _process_with_retry(process, item, rate_limit_sleep, sleep)
        except Exception as e:
            logger.error("Processing %s failed: %s", item_id, e)
            errors.append({"id": item_id, "error": str(e), "failedAt": utc_now_iso()})
        else:
            results.append(result)
            tracker.mark_processed(item_id, positions[item_id])

        if i < len(batch) - 1:
            sleep(delay)

    summary = {
        "batchNumber": batch_number,
        "processedAt": utc_now_iso(),
        "itemsInBatch": len(batch),
        "successful": len(results),
        "failed": len(errors),
        "errors": errors,
    }
    if batch:
        tracker.record_batch(dict(summary))
    summary["results"] = results
    summary["remaining"] = len(remaining) - len(results)
    return summary
