"""
Migration passes.

Each pass returns a RunStats for the work it did:

- upload_users: legacy users -> profiles (upsert on email)
- import_jobs: legacy jobs -> jobs (insert-or-ignore on legacy job id)
- link_profiles: fill legacy user ids on existing profiles
- reconcile_jobs: point jobs at their employers
- run_full_migration: users, jobs, then direct-id reconciliation

``run_script`` wraps a pass with configuration, timing, the summary
block and the process exit code.
"""

import time
import uuid
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from .backfill import link_legacy_user_ids
from .env import Settings, load_env
from .errors import MigrationError, StoreError
from .identity import SENTINEL_EMPLOYER_ID
from .legacy import LegacyJob, LegacyUser
from .loader import BATCH_PAUSE_SECONDS, DEFAULT_BATCH_SIZE, BulkLoader
from .logger import StructuredLogger, get_logger
from .reconcile import (
    PROFILE_COLUMNS,
    DirectIdStrategy,
    ProfileIndex,
    Strategy,
    ensure_sentinel_employer,
    reconcile,
)
from .report import log_notes, log_summary
from .schema import validate_legacy_job, validate_legacy_user
from .stats import RunStats
from .store import DEFAULT_PAGE_SIZE, TargetStore, open_store
from .transform import CANDIDATE, transform_job, transform_user


def _valid(records, validate, describe, logger) -> Tuple[list, RunStats]:
    valid = []
    skipped = 0
    for record in records:
        errors = validate(record)
        if errors:
            logger.warning(f"Skipping {describe(record)}: {'; '.join(errors)}")
            skipped += 1
            continue
        valid.append(record)
    return valid, RunStats(skipped=skipped)


def upload_users(
    store: TargetStore,
    users: Sequence[LegacyUser],
    batch_size: int = DEFAULT_BATCH_SIZE,
    logger: Optional[StructuredLogger] = None,
    pause_seconds: float = BATCH_PAUSE_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> RunStats:
    logger = logger or get_logger()
    valid, stats = _valid(users, validate_legacy_user, lambda u: f"user {u.id}", logger)
    now = datetime.now(timezone.utc)
    rows = [transform_user(user, now=now).to_row() for user in valid]

    loader = BulkLoader(
        store, "profiles", "email",
        batch_size=batch_size,
        logger=logger,
        pause_seconds=pause_seconds,
        sleep=sleep,
    )
    return RunStats(total=len(users)) + stats + loader.load(rows)


def import_jobs(
    store: TargetStore,
    jobs: Sequence[LegacyJob],
    batch_size: int = DEFAULT_BATCH_SIZE,
    logger: Optional[StructuredLogger] = None,
    page_size: int = DEFAULT_PAGE_SIZE,
    pause_seconds: float = BATCH_PAUSE_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> RunStats:
    """
    Load legacy jobs with a preliminary owner.

    The owner is the profile carrying the job's legacy employer id when one
    is already stored, the placeholder employer otherwise.
    """
    logger = logger or get_logger()
    profiles = ProfileIndex(store.fetch_all("profiles", PROFILE_COLUMNS, page_size))
    valid, stats = _valid(jobs, validate_legacy_job, lambda j: f'job {j.id} "{j.title}"', logger)

    now = datetime.now(timezone.utc)
    rows = []
    for job in valid:
        employer_id = profiles.by_legacy_id(job.employer_ref) or SENTINEL_EMPLOYER_ID
        rows.append(transform_job(job, employer_id=employer_id, now=now).to_row())

    if any(row["employer_id"] == SENTINEL_EMPLOYER_ID for row in rows) and SENTINEL_EMPLOYER_ID not in profiles:
        ensure_sentinel_employer(store, logger)

    loader = BulkLoader(
        store, "jobs", "wordpress_job_id",
        batch_size=batch_size,
        ignore_duplicates=True,
        logger=logger,
        pause_seconds=pause_seconds,
        sleep=sleep,
    )
    return RunStats(total=len(jobs)) + stats + loader.load(rows)


def link_profiles(
    store: TargetStore,
    users: Sequence[LegacyUser],
    logger: Optional[StructuredLogger] = None,
    **kwargs,
) -> RunStats:
    return link_legacy_user_ids(store, users, logger=logger, **kwargs)


def reconcile_jobs(
    store: TargetStore,
    strategy: Strategy,
    items: Sequence,
    logger: Optional[StructuredLogger] = None,
    **kwargs,
) -> RunStats:
    return reconcile(store, strategy, list(items), logger=logger, **kwargs)


def run_full_migration(
    store: TargetStore,
    users: Sequence[LegacyUser],
    jobs: Sequence[LegacyJob],
    batch_size: int = DEFAULT_BATCH_SIZE,
    logger: Optional[StructuredLogger] = None,
    pause_seconds: float = BATCH_PAUSE_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> List[RunStats]:
    """Users pass, jobs pass, then direct-id reconciliation. One RunStats per pass."""
    logger = logger or get_logger()
    pacing = dict(logger=logger, pause_seconds=pause_seconds, sleep=sleep)
    users_stats = upload_users(store, users, batch_size=batch_size, **pacing)
    jobs_stats = import_jobs(store, jobs, batch_size=batch_size, **pacing)
    reconcile_stats = reconcile_jobs(store, DirectIdStrategy(), jobs, **pacing)
    return [users_stats, jobs_stats, reconcile_stats]


def check_connection(store: TargetStore, logger: Optional[StructuredLogger] = None) -> bool:
    """Verify read access and insert/delete permission on profiles."""
    logger = logger or get_logger()
    try:
        logger.info("Testing profiles table access...")
        existing = store.count("profiles")
        logger.info(f"Profiles table accessible ({existing} existing records)")

        logger.info("Testing insert permissions...")
        test_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        store.upsert("profiles", [{
            "id": test_id,
            "email": f"test-{int(time.time() * 1000)}@example.com",
            "full_name": "Test User",
            "user_type": CANDIDATE,
            "created_at": now,
            "updated_at": now,
        }], on_conflict="id")
        logger.info("Insert permission verified")

        if store.delete("profiles", test_id):
            logger.info("Cleanup successful")
        else:
            logger.warning(f"Test profile {test_id} was not removed")
    except StoreError as e:
        logger.error(f"Connection test failed: {e}")
        return False
    return True


def run_script(
    title: str,
    body: Callable[[TargetStore, StructuredLogger], RunStats],
    summary: Callable[[RunStats], Iterable[Tuple[str, object]]],
) -> int:
    """
    Run one pass as a standalone script.

    Returns:
        Process exit code: 1 on a fatal error or any per-record error, else 0
    """
    load_env()
    started = time.monotonic()
    try:
        settings = Settings.from_env()
    except MigrationError as e:
        get_logger().critical(f"Error: {e}")
        return 1

    logger = get_logger(level=settings.log_level)
    logger.info(f"Starting: {title}")
    try:
        store = open_store(settings)
        stats = body(store, logger)
    except MigrationError as e:
        logger.critical(f"Fatal error: {e}")
        return 1

    log_summary(logger, title, summary(stats), time.monotonic() - started)
    log_notes(logger, stats)
    if stats.exit_code == 0:
        logger.info("Completed successfully!")
    return stats.exit_code
