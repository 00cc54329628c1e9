"""
Map legacy records onto the target profile and job schema.

Transformation never fails a record: bad dates fall back to the current
time and bad counters to 0.
"""

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .identity import SENTINEL_EMPLOYER_ID, job_uuid, user_uuid
from .legacy import LegacyJob, LegacyUser
from .normalize import legacy_key, normalize_email, parse_legacy_timestamp

CANDIDATE = "candidate"
EMPLOYER = "employer"

EXCERPT_LENGTH = 200
DEFAULT_JOB_TYPE = "Full Time"
DEFAULT_COUNTRY = "United Kingdom"


@dataclass
class TargetProfile:
    id: str
    email: str
    full_name: str
    user_type: str
    bio: Optional[str]
    wordpress_user_id: Optional[str]
    created_at: datetime
    updated_at: datetime
    company_name: Optional[str] = None
    company_description: Optional[str] = None

    def to_row(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class TargetJob:
    id: str
    employer_id: str
    title: str
    description: str
    excerpt: str
    job_type: str
    category: Optional[str]
    location_country: str
    location_city: Optional[str]
    location_address: Optional[str]
    salary_range: Optional[str]
    status: str
    featured: bool
    view_count: int
    application_count: int
    posted_date: datetime
    wordpress_job_id: Optional[str]
    created_at: datetime
    updated_at: datetime

    def to_row(self) -> Dict[str, Any]:
        return asdict(self)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def compose_name(user: LegacyUser) -> str:
    full_name = f"{user.first_name.strip()} {user.last_name.strip()}".strip()
    return full_name or user.display_name.strip() or user.username.strip()


def transform_user(user: LegacyUser, now: Optional[datetime] = None) -> TargetProfile:
    now = now or _utcnow()
    return TargetProfile(
        id=user_uuid(user.id),
        email=normalize_email(user.email),
        full_name=compose_name(user),
        user_type=EMPLOYER if user.is_employer else CANDIDATE,
        bio=user.description or None,
        wordpress_user_id=legacy_key(user.id),
        created_at=parse_legacy_timestamp(user.registered) or now,
        updated_at=now,
    )


def make_excerpt(job: LegacyJob) -> str:
    if job.excerpt.strip():
        return job.excerpt
    return job.content[:EXCERPT_LENGTH] + "..."


def transform_job(
    job: LegacyJob,
    employer_id: str = SENTINEL_EMPLOYER_ID,
    now: Optional[datetime] = None,
) -> TargetJob:
    """
    Build the target job row.

    Args:
        job: Legacy job record
        employer_id: Preliminary owner; the reconciler settles the final one
        now: Clock override for the fallback timestamps
    """
    now = now or _utcnow()
    return TargetJob(
        id=job_uuid(job.id),
        employer_id=employer_id,
        title=job.title.strip(),
        description=job.content,
        excerpt=make_excerpt(job),
        job_type=job.job_types[0] if job.job_types else DEFAULT_JOB_TYPE,
        category=job.categories[0] if job.categories else None,
        location_country=job.country or job.job_location.strip() or DEFAULT_COUNTRY,
        location_city=job.meta.city,
        location_address=job.meta.address,
        salary_range=job.meta.salary,
        status="active" if job.status == "publish" else "draft",
        featured=False,
        view_count=job.meta.viewed_count,
        application_count=0,
        posted_date=parse_legacy_timestamp(job.date_posted) or now,
        wordpress_job_id=legacy_key(job.id),
        created_at=now,
        updated_at=now,
    )


def sentinel_profile(now: Optional[datetime] = None) -> TargetProfile:
    """The placeholder employer every unresolved job points at."""
    now = now or _utcnow()
    return TargetProfile(
        id=SENTINEL_EMPLOYER_ID,
        email="employers@osteojob.com",
        full_name="OsteoJob Employers",
        user_type=EMPLOYER,
        bio=None,
        wordpress_user_id=None,
        created_at=now,
        updated_at=now,
        company_name="Various Employers",
        company_description="Jobs from various osteopathic practices",
    )
