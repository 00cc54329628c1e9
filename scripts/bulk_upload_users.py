#!/usr/bin/env python3
"""
Bulk upload legacy users to the target store.

Reads osteojob-users.json and upserts every user into profiles in batches,
keyed on email. Re-running is safe: existing emails count as duplicates.

Usage:
    python scripts/bulk_upload_users.py
"""

from pathlib import Path
import sys

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from osteojob.legacy import load_users
from osteojob.migrate import run_script, upload_users

BATCH_SIZE = 100
USERS_FILE = Path(__file__).parent.parent / "osteojob-users.json"


def run(store, logger):
    logger.info(f"Reading users from {USERS_FILE}...")
    users = load_users(USERS_FILE)
    logger.info(f"Found {len(users)} users")
    return upload_users(store, users, batch_size=BATCH_SIZE, logger=logger)


def summary(stats):
    return [
        ("Total users", stats.total),
        ("Inserted", stats.inserted),
        ("Duplicates", stats.duplicates),
        ("Skipped (invalid)", stats.skipped),
        ("Errors", stats.errors),
    ]


def main():
    sys.exit(run_script("Upload Summary", run, summary))


if __name__ == "__main__":
    main()
