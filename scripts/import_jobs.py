#!/usr/bin/env python3
"""
Import legacy jobs into the target store.

Each job gets a preliminary owner: the profile carrying its legacy employer
id when one exists, the placeholder employer otherwise. Jobs already
imported (same legacy job id) are left untouched.

Usage:
    python scripts/import_jobs.py
"""

from pathlib import Path
import sys

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from osteojob.legacy import load_jobs
from osteojob.migrate import import_jobs, run_script

BATCH_SIZE = 100
JOBS_FILE = Path(__file__).parent.parent / "osteojob-jobs.json"


def run(store, logger):
    logger.info(f"Reading jobs from {JOBS_FILE}...")
    jobs = load_jobs(JOBS_FILE)
    logger.info(f"Found {len(jobs)} jobs")
    return import_jobs(store, jobs, batch_size=BATCH_SIZE, logger=logger)


def summary(stats):
    return [
        ("Total jobs", stats.total),
        ("Inserted", stats.inserted),
        ("Already imported", stats.duplicates),
        ("Skipped (invalid)", stats.skipped),
        ("Errors", stats.errors),
    ]


def main():
    sys.exit(run_script("Import Summary", run, summary))


if __name__ == "__main__":
    main()
