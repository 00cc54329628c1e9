"""
Pytest configuration and shared fixtures.
"""

import json
import pytest
from pathlib import Path
from typing import Any, Dict, List

from osteojob.database import init_database
from osteojob.legacy import LegacyJob, LegacyUser
from osteojob.logger import StructuredLogger
from osteojob.store import SqlStore


@pytest.fixture
def sleep_calls() -> List[float]:
    """Pass ``sleep_calls.append`` as a sleep function to record pauses."""
    return []


@pytest.fixture
def quiet_logger() -> StructuredLogger:
    """Logger with no handlers attached."""
    return StructuredLogger(name="test", enable_file=False, enable_console=False)


@pytest.fixture
def db_path(tmp_path) -> Path:
    """Fresh SQLite database holding the profiles and jobs tables."""
    path = tmp_path / "osteojob.db"
    init_database(path)
    return path


@pytest.fixture
def sql_store(db_path) -> SqlStore:
    return SqlStore(db_path)


@pytest.fixture
def user_records() -> List[Dict[str, Any]]:
    """Two candidates and one employer, as exported by WordPress."""
    return [
        {
            "id": 11,
            "email": "Alice@Example.com",
            "first_name": "Alice",
            "last_name": "Moss",
            "display_name": "alice",
            "username": "alice",
            "roles": ["wp_job_board_pro_candidate"],
            "description": "Osteopath in training",
            "registered": "2021-03-04 10:11:12",
        },
        {
            "id": 12,
            "email": "bob@example.com",
            "first_name": "",
            "last_name": "",
            "display_name": "Bob B",
            "username": "bobb",
            "roles": ["subscriber"],
            "description": "",
            "registered": "2021-05-06 07:08:09",
        },
        {
            "id": 42,
            "email": "clinic@backcare.co.uk",
            "first_name": "Back",
            "last_name": "Care",
            "display_name": "Back Care Clinic",
            "username": "backcare",
            "roles": ["wp_job_board_pro_employer"],
            "description": "Family practice",
            "registered": "2020-01-01 09:00:00",
        },
    ]


@pytest.fixture
def job_records() -> List[Dict[str, Any]]:
    """Two jobs posted by the employer in ``user_records``."""
    return [
        {
            "id": 501,
            "title": "Associate Osteopath",
            "content": "Join a busy family practice. " * 20,
            "excerpt": "",
            "job_types": ["Part Time"],
            "categories": ["Osteopathy"],
            "locations": ["United Kingdom"],
            "job_location": "",
            "status": "publish",
            "date_posted": "2023-02-01 12:00:00",
            "author_id": 42,
            "meta": {
                "_job_employer_posted_by": "42",
                "custom-text-13457249": "Leeds",
                "custom-textarea-13228385": "1 Park Row, Leeds",
                "_job_salary": "£40k",
                "_viewed_count": "17",
            },
        },
        {
            "id": 502,
            "title": "Locum Osteopath",
            "content": "Short term cover.",
            "excerpt": "Two weeks in August",
            "job_types": [],
            "categories": [],
            "locations": ["Ireland"],
            "job_location": "",
            "status": "expired",
            "date_posted": "2023-03-01 08:30:00",
            "author_id": 42,
            "meta": {},
        },
    ]


@pytest.fixture
def legacy_users(user_records) -> List[LegacyUser]:
    return [LegacyUser.from_dict(r) for r in user_records]


@pytest.fixture
def legacy_jobs(job_records) -> List[LegacyJob]:
    return [LegacyJob.from_dict(r) for r in job_records]


@pytest.fixture
def export_dir(tmp_path, user_records, job_records) -> Path:
    """Directory holding the three legacy export files."""
    (tmp_path / "osteojob-users.json").write_text(json.dumps(user_records))
    (tmp_path / "osteojob-jobs.json").write_text(json.dumps(job_records))
    (tmp_path / "osteojob-job-user-mapping.json").write_text(json.dumps([
        {"job_id": 501, "job_title": "Associate Osteopath", "employer_email": "CLINIC@backcare.co.uk"},
        {"job_id": 502, "job_title": "Locum Osteopath", "employer_email": "nobody@example.com"},
    ]))
    return tmp_path
