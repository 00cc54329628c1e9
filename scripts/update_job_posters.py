#!/usr/bin/env python3
"""
Re-point jobs at their employers by fuzzy matching.

For stores whose jobs carry no legacy job id: each legacy job is matched
on normalized title plus country, city and posted date (when both sides
have them). The employer is the profile whose wordpress_user_id equals the
job's legacy poster.

Usage:
    python scripts/update_job_posters.py
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
    return reconcile_jobs(store, make_strategy("fuzzy"), jobs, logger=logger)


def summary(stats):
    return [
        ("Total jobs in file", stats.total),
        ("Updated", stats.updated),
        ("Used placeholder", stats.used_placeholder),
        ("Not found in DB", stats.not_found),
        ("Multiple matches", stats.multiple_matches),
        ("Errors", stats.errors),
    ]


def main():
    sys.exit(run_script("Update Summary", run, summary))


if __name__ == "__main__":
    main()
