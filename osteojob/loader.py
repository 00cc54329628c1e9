"""
Batch upsert of transformed records into the target store.

A natural-key conflict is an expected outcome of re-running a load and is
counted as a duplicate. Any other store failure is counted against the
batch and the run moves on to the next batch.
"""

import time
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

from .errors import DuplicateKeyError, StoreError
from .logger import StructuredLogger, get_logger
from .stats import RunStats
from .store import TargetStore

DEFAULT_BATCH_SIZE = 100
BATCH_PAUSE_SECONDS = 0.1


def batched(rows: Sequence[Dict[str, Any]], size: int) -> Iterator[List[Dict[str, Any]]]:
    if size < 1:
        raise ValueError("Batch size must be at least 1")
    for start in range(0, len(rows), size):
        yield list(rows[start:start + size])


def dedupe_batch(batch: List[Dict[str, Any]], key: str) -> List[Dict[str, Any]]:
    """Keep the first row per natural key; case-insensitive for emails."""
    seen = set()
    unique = []
    for row in batch:
        value = row.get(key)
        marker = value.strip().lower() if isinstance(value, str) else value
        if marker in seen:
            continue
        seen.add(marker)
        unique.append(row)
    return unique


class BulkLoader:
    """
    Upserts rows into one table in fixed-size batches.

    Args:
        store: Target store
        table: Table name
        natural_key: Column used to detect duplicates (email, wordpress_job_id)
        batch_size: Rows per upsert call
        ignore_duplicates: Leave existing rows untouched instead of updating them
        pause_seconds: Delay between batches, to stay under backend rate limits
        sleep: Function used to wait between batches
    """

    def __init__(
        self,
        store: TargetStore,
        table: str,
        natural_key: str,
        batch_size: int = DEFAULT_BATCH_SIZE,
        ignore_duplicates: bool = False,
        logger: Optional[StructuredLogger] = None,
        pause_seconds: float = BATCH_PAUSE_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if batch_size < 1:
            raise ValueError("Batch size must be at least 1")
        self.store = store
        self.table = table
        self.natural_key = natural_key
        self.batch_size = batch_size
        self.ignore_duplicates = ignore_duplicates
        self.logger = logger or get_logger()
        self.pause_seconds = pause_seconds
        self.sleep = sleep

    def load(self, rows: Sequence[Dict[str, Any]]) -> RunStats:
        stats = RunStats()
        total = len(rows)
        total_batches = (total + self.batch_size - 1) // self.batch_size
        self.logger.info(
            f"Processing {total_batches} batches of up to {self.batch_size} rows into {self.table}"
        )

        processed = 0
        for number, batch in enumerate(batched(rows, self.batch_size), 1):
            stats = stats + self.load_batch(batch, number, total_batches)
            processed += len(batch)
            progress = round(processed / total * 100) if total else 100
            self.logger.info(f"  Progress: {progress}% ({processed}/{total})")
            if number < total_batches and self.pause_seconds:
                self.sleep(self.pause_seconds)

        return stats

    def load_batch(self, batch: List[Dict[str, Any]], number: int = 1, total_batches: int = 1) -> RunStats:
        label = f"Batch {number}/{total_batches}"
        unique = dedupe_batch(batch, self.natural_key)
        keys = [row.get(self.natural_key) for row in unique]
        in_batch_duplicates = len(batch) - len(unique)

        try:
            existing = self.store.existing_keys(self.table, self.natural_key, keys)
            self.store.upsert(
                self.table,
                unique,
                on_conflict=self.natural_key,
                ignore_duplicates=self.ignore_duplicates,
            )
        except DuplicateKeyError as e:
            self.logger.warning(f"  {label}: duplicate entries found, skipping", error=str(e))
            return RunStats(attempted=len(batch), duplicates=len(batch))
        except StoreError as e:
            self.logger.error(
                f"  {label}: {e}",
                table=self.table,
                keys=[str(k) for k in keys],
            )
            return RunStats(attempted=len(batch), errors=len(batch))

        already_present = sum(1 for k in keys if k is not None and str(k) in existing)
        inserted = len(unique) - already_present
        duplicates = already_present + in_batch_duplicates
        self.logger.info(f"  {label}: inserted {inserted}, duplicates {duplicates}")
        return RunStats(attempted=len(batch), inserted=inserted, duplicates=duplicates)
