"""
Cross-reference reconciliation.

Runs after profiles and jobs are both persisted and points every job at
its real employer profile. A strategy decides how a legacy item finds
its persisted job and how its employer is resolved:

- DirectIdStrategy: job by legacy job id, employer by legacy user id.
- EmailStrategy: job by legacy job id, employer by email (mapping file).
- FuzzyStrategy: job by title/location/date match, employer by legacy user id.

Unresolved employers get the sentinel owner; jobs that cannot be found
are skipped. Neither is an error.
"""

import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .errors import EmptyStoreError, StoreError
from .identity import SENTINEL_EMPLOYER_ID
from .legacy import EmailMapping, LegacyJob
from .logger import StructuredLogger, get_logger
from .matching import JOB_COLUMNS as FUZZY_JOB_COLUMNS, find_matching_jobs
from .normalize import legacy_key, normalize_email
from .stats import RunStats
from .store import DEFAULT_PAGE_SIZE, TargetStore
from .transform import sentinel_profile

POSTER_ALIAS = "poster_id"
PROFILE_COLUMNS = ("id", "email", "wordpress_user_id")
LEGACY_JOB_COLUMNS = ("id", "title", "wordpress_job_id", "employer_id")

PAUSE_EVERY = 10
PAUSE_SECONDS = 0.1

Row = Dict[str, Any]


def ensure_sentinel_employer(store: TargetStore, logger: Optional[StructuredLogger] = None) -> bool:
    """Upsert the placeholder employer so jobs pointing at it satisfy the foreign key."""
    logger = logger or get_logger()
    try:
        store.upsert("profiles", [sentinel_profile().to_row()], on_conflict="id")
    except StoreError as e:
        logger.warning(f"Could not create placeholder employer: {e}")
        logger.info("Continuing anyway...")
        return False
    logger.info(f"Placeholder employer {SENTINEL_EMPLOYER_ID} in place")
    return True


class ProfileIndex:
    """In-memory lookups over persisted profiles. First row (lowest id) wins."""

    def __init__(self, rows: Sequence[Row]):
        self.rows = sorted(rows, key=lambda r: str(r.get("id")))
        self.ids = {row["id"] for row in self.rows}
        self._by_legacy_id: Dict[str, str] = {}
        self._by_email: Dict[str, str] = {}
        for row in self.rows:
            legacy_id = legacy_key(row.get("wordpress_user_id"))
            if legacy_id:
                self._by_legacy_id.setdefault(legacy_id, row["id"])
            email = normalize_email(row.get("email"))
            if email:
                self._by_email.setdefault(email, row["id"])

    def __len__(self):
        return len(self.rows)

    def __contains__(self, profile_id):
        return profile_id in self.ids

    def by_legacy_id(self, legacy_id: Any) -> Optional[str]:
        key = legacy_key(legacy_id)
        return self._by_legacy_id.get(key) if key else None

    def by_email(self, email: Optional[str]) -> Optional[str]:
        key = normalize_email(email)
        return self._by_email.get(key) if key else None

    @property
    def with_legacy_id(self) -> int:
        return len(self._by_legacy_id)


class JobIndex:
    """In-memory view of persisted jobs, ordered by id."""

    def __init__(self, rows: Sequence[Row]):
        self.rows = sorted(rows, key=lambda r: str(r.get("id")))
        self._by_legacy_id: Dict[str, Row] = {}
        for row in self.rows:
            legacy_id = legacy_key(row.get("wordpress_job_id"))
            if legacy_id:
                self._by_legacy_id.setdefault(legacy_id, row)

    def __len__(self):
        return len(self.rows)

    def by_legacy_id(self, legacy_id: Any) -> Optional[Row]:
        key = legacy_key(legacy_id)
        return self._by_legacy_id.get(key) if key else None


class Strategy(ABC):
    name = ""
    job_columns: Tuple[str, ...] = LEGACY_JOB_COLUMNS

    @abstractmethod
    def locate(self, item, jobs: JobIndex) -> Tuple[Optional[Row], RunStats]:
        """Find the persisted job for ``item``."""

    @abstractmethod
    def resolve_employer(self, item, profiles: ProfileIndex) -> Tuple[Optional[str], RunStats]:
        """Find the owning profile id for ``item``."""

    @abstractmethod
    def describe(self, item) -> str:
        """Short label for progress lines."""

    def skip_reason(self, item) -> Optional[str]:
        """Why ``item`` should be left alone, or None to process it."""
        return None


class DirectIdStrategy(Strategy):
    name = "direct-id"

    def locate(self, item: LegacyJob, jobs: JobIndex) -> Tuple[Optional[Row], RunStats]:
        return jobs.by_legacy_id(item.id), RunStats()

    def resolve_employer(self, item: LegacyJob, profiles: ProfileIndex) -> Tuple[Optional[str], RunStats]:
        return profiles.by_legacy_id(item.employer_ref), RunStats()

    def describe(self, item: LegacyJob) -> str:
        return f'Job #{item.id} "{item.title}"'


class EmailStrategy(Strategy):
    name = "email"

    def locate(self, item: EmailMapping, jobs: JobIndex) -> Tuple[Optional[Row], RunStats]:
        return jobs.by_legacy_id(item.job_id), RunStats()

    def resolve_employer(self, item: EmailMapping, profiles: ProfileIndex) -> Tuple[Optional[str], RunStats]:
        profile_id = profiles.by_email(item.employer_email)
        if profile_id is None:
            return None, RunStats(email_not_found=1)
        return profile_id, RunStats()

    def describe(self, item: EmailMapping) -> str:
        return f'Job #{item.job_id} "{item.job_title}"'

    def skip_reason(self, item: EmailMapping) -> Optional[str]:
        if not normalize_email(item.employer_email):
            return "No employer email"
        return None


class FuzzyStrategy(Strategy):
    name = "fuzzy"
    job_columns = FUZZY_JOB_COLUMNS

    def locate(self, item: LegacyJob, jobs: JobIndex) -> Tuple[Optional[Row], RunStats]:
        matches = find_matching_jobs(item, jobs.rows)
        if not matches:
            return None, RunStats()
        if len(matches) > 1:
            return matches[0], RunStats(multiple_matches=1)
        return matches[0], RunStats()

    def resolve_employer(self, item: LegacyJob, profiles: ProfileIndex) -> Tuple[Optional[str], RunStats]:
        return profiles.by_legacy_id(item.employer_ref), RunStats()

    def describe(self, item: LegacyJob) -> str:
        return f'Job "{item.title}"'


STRATEGIES = {
    DirectIdStrategy.name: DirectIdStrategy,
    EmailStrategy.name: EmailStrategy,
    FuzzyStrategy.name: FuzzyStrategy,
}


class Reconciler:
    """
    Re-points persisted jobs at their employers.

    Args:
        store: Target store
        strategy: How items find jobs and employers
        page_size: Rows per paginated read
        pause_every: Pause after this many processed items
        pause_seconds: Length of the pause
        sleep: Function used to pause
    """

    def __init__(
        self,
        store: TargetStore,
        strategy: Strategy,
        logger: Optional[StructuredLogger] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        pause_every: int = PAUSE_EVERY,
        pause_seconds: float = PAUSE_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.store = store
        self.strategy = strategy
        self.logger = logger or get_logger()
        self.page_size = page_size
        self.pause_every = pause_every
        self.pause_seconds = pause_seconds
        self.sleep = sleep
        self.profiles: Optional[ProfileIndex] = None
        self.jobs: Optional[JobIndex] = None
        self.poster_alias = False

    def prepare(self) -> None:
        """
        Load profiles and jobs once and detect the poster alias column.

        Raises:
            EmptyStoreError: If there are no persisted jobs to reconcile
        """
        self.logger.info("Loading all profiles for employer lookup...")
        self.profiles = ProfileIndex(
            self.store.fetch_all("profiles", PROFILE_COLUMNS, self.page_size)
        )
        self.logger.info(
            f"Loaded {len(self.profiles)} profiles, "
            f"{self.profiles.with_legacy_id} with a legacy user id"
        )

        self.logger.info("Loading all jobs for matching...")
        self.jobs = JobIndex(
            self.store.fetch_all("jobs", self.strategy.job_columns, self.page_size)
        )
        self.logger.info(f"Loaded {len(self.jobs)} jobs")
        if not len(self.jobs):
            raise EmptyStoreError("No jobs found in the target store; import jobs before reconciling")

        self.poster_alias = self.store.has_column("jobs", POSTER_ALIAS)
        if not self.poster_alias:
            self.logger.info(f"jobs.{POSTER_ALIAS} not available; only employer_id will be written")

    def run(self, items: Sequence) -> RunStats:
        if self.jobs is None or self.profiles is None:
            self.prepare()

        total = len(items)
        self.logger.info(f"Processing {total} items with the {self.strategy.name} strategy...")
        stats = RunStats(total=total)
        for processed, item in enumerate(items, 1):
            stats = stats + self.reconcile_one(item, f"[{processed}/{total}]")
            if self.pause_every and processed % self.pause_every == 0 and self.pause_seconds:
                self.sleep(self.pause_seconds)
        return stats

    def reconcile_one(self, item, prefix: str = "") -> RunStats:
        label = f"{prefix} {self.strategy.describe(item)}".strip()
        reason = self.strategy.skip_reason(item)
        if reason:
            self.logger.warning(f"{label} - {reason}, skipping")
            return RunStats(skipped=1)

        job, stats = self.strategy.locate(item, self.jobs)
        if job is None:
            self.logger.warning(f"{label} - Not found in database")
            return stats + RunStats(not_found=1)
        if stats.multiple_matches:
            self.logger.warning(f"{label} - Multiple matches, using lowest id {job['id']}")

        employer_id, resolved = self.strategy.resolve_employer(item, self.profiles)
        stats = stats + resolved
        if employer_id is None:
            self.logger.warning(f"{label} - Employer not found, using placeholder")
            employer_id = SENTINEL_EMPLOYER_ID
            stats = stats + RunStats(used_placeholder=1)
            if SENTINEL_EMPLOYER_ID not in self.profiles:
                ensure_sentinel_employer(self.store, self.logger)
                self.profiles.ids.add(SENTINEL_EMPLOYER_ID)

        return stats + self.assign(job, employer_id, label)

    def assign(self, job: Row, employer_id: str, label: str = "") -> RunStats:
        values = {"employer_id": employer_id}
        if self.poster_alias:
            values[POSTER_ALIAS] = employer_id

        try:
            changed = self.store.update("jobs", job["id"], values)
        except StoreError as e:
            self.logger.error(f"{label} - Error updating: {e}", job_id=job["id"], employer_id=employer_id)
            return RunStats(errors=1)
        if not changed:
            self.logger.error(f"{label} - Update matched no rows", job_id=job["id"])
            return RunStats(errors=1)

        job["employer_id"] = employer_id
        placeholder = " (placeholder)" if employer_id == SENTINEL_EMPLOYER_ID else ""
        self.logger.info(f"{label} - Updated{placeholder}")
        return RunStats(updated=1, alias_unavailable=0 if self.poster_alias else 1)


def make_strategy(name: str) -> Strategy:
    try:
        return STRATEGIES[name]()
    except KeyError:
        raise ValueError(f"Unknown strategy {name!r}; choose from {', '.join(STRATEGIES)}") from None


def reconcile(store: TargetStore, strategy: Strategy, items: List, **kwargs) -> RunStats:
    """Prepare a reconciler and run it over ``items``."""
    reconciler = Reconciler(store, strategy, **kwargs)
    reconciler.prepare()
    return reconciler.run(items)
