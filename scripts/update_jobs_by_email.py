#!/usr/bin/env python3
"""
Re-point jobs at their employers using the email mapping file.

Each mapping entry finds its stored job through wordpress_job_id and its
employer by case-insensitive email.

Usage:
    python scripts/update_jobs_by_email.py
"""

from pathlib import Path
import sys

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from osteojob.legacy import load_email_mappings
from osteojob.migrate import reconcile_jobs, run_script
from osteojob.reconcile import make_strategy

MAPPING_FILE = Path(__file__).parent.parent / "osteojob-job-user-mapping.json"


def run(store, logger):
    logger.info(f"Reading job mappings from {MAPPING_FILE}...")
    mappings = load_email_mappings(MAPPING_FILE)
    logger.info(f"Found {len(mappings)} job mappings")
    return reconcile_jobs(store, make_strategy("email"), mappings, logger=logger)


def summary(stats):
    matchable = max(1, stats.total)
    return [
        ("Total job mappings", stats.total),
        ("Updated", stats.updated),
        ("Job not found", stats.not_found),
        ("Email not found", stats.email_not_found),
        ("Skipped (no email)", stats.skipped),
        ("Used placeholder", stats.used_placeholder),
        ("Errors", stats.errors),
        ("Match rate", f"{stats.updated / matchable * 100:.1f}%"),
    ]


def main():
    sys.exit(run_script("Update Summary", run, summary))


if __name__ == "__main__":
    main()
