#!/usr/bin/env python3
"""
Re-point jobs at their employers by legacy ids.

Each legacy job finds its stored job through wordpress_job_id and its
employer through profiles.wordpress_user_id.

Usage:
    python scripts/update_jobs_by_legacy_id.py
"""

from pathlib import Path
import sys

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from osteojob.legacy import load_jobs
from osteojob.migrate import reconcile_jobs, run_script
from osteojob.reconcile import make_strategy

JOBS_FILE = Path(__file__).parent.parent / "osteojob-jobs.json"


def run(store, logger):
    logger.info(f"Reading jobs from {JOBS_FILE}...")
    jobs = load_jobs(JOBS_FILE)
    logger.info(f"Found {len(jobs)} jobs")
    return reconcile_jobs(store, make_strategy("direct-id"), jobs, logger=logger)


def summary(stats):
    return [
        ("Total jobs in file", stats.total),
        ("Updated", stats.updated),
        ("Used placeholder", stats.used_placeholder),
        ("Job not found", stats.not_found),
        ("Errors", stats.errors),
    ]


def main():
    sys.exit(run_script("Update Summary", run, summary))


if __name__ == "__main__":
    main()
