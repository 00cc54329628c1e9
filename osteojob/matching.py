"""
Fuzzy matching of legacy jobs against persisted jobs.

Used when the persisted jobs carry no legacy id to join on.

Rules:
- Normalized titles must be equal.
- Country, city and posted date are compared only when both sides have a
  value. Missing data is never treated as a mismatch.
- Posted dates match when less than DATE_TOLERANCE_MS apart.

Invariant:
Given the same inputs the same candidate is chosen: candidates are
ordered by id and the first one wins.
"""

from datetime import datetime
from typing import Any, Callable, Dict, List

from .legacy import LegacyJob
from .normalize import coerce_timestamp, normalize_location, normalize_title, parse_legacy_timestamp

DATE_TOLERANCE_MS = 1000

# Columns the matcher reads from persisted jobs.
JOB_COLUMNS = ("id", "title", "location_country", "location_city", "posted_date", "employer_id")


def optional_match(left: Any, right: Any, equal: Callable[[Any, Any], bool]) -> bool:
    """True when either side is missing, otherwise whatever ``equal`` says."""
    if left is None or left == "" or right is None or right == "":
        return True
    return equal(left, right)


def same_text(left: str, right: str) -> bool:
    return normalize_location(left) == normalize_location(right)


def within_tolerance(left: datetime, right: datetime, tolerance_ms: int = DATE_TOLERANCE_MS) -> bool:
    return abs((left - right).total_seconds()) * 1000 < tolerance_ms


def job_matches(legacy: LegacyJob, candidate: Dict[str, Any]) -> bool:
    title = normalize_title(legacy.title)
    if not title or normalize_title(candidate.get("title")) != title:
        return False

    if not optional_match(legacy.country, candidate.get("location_country"), same_text):
        return False

    if not optional_match(legacy.meta.city, candidate.get("location_city"), same_text):
        return False

    return optional_match(
        parse_legacy_timestamp(legacy.date_posted),
        coerce_timestamp(candidate.get("posted_date")),
        within_tolerance,
    )


def find_matching_jobs(legacy: LegacyJob, candidates: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """All candidates matching ``legacy``, lowest id first."""
    matches = [c for c in candidates if job_matches(legacy, c)]
    return sorted(matches, key=lambda c: str(c.get("id")))

