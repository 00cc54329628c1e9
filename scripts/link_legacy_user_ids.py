#!/usr/bin/env python3
"""
Fill wordpress_user_id on stored profiles.

Matches profiles to legacy users by normalized email and writes the
legacy user id wherever it is missing or different.

Usage:
    python scripts/link_legacy_user_ids.py
"""

from pathlib import Path
import sys

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from osteojob.legacy import load_users
from osteojob.migrate import link_profiles, run_script

USERS_FILE = Path(__file__).parent.parent / "osteojob-users.json"


def run(store, logger):
    logger.info(f"Reading legacy users from {USERS_FILE}...")
    users = load_users(USERS_FILE)
    logger.info(f"Found {len(users)} legacy users")
    return link_profiles(store, users, logger=logger)


def summary(stats):
    return [
        ("Total legacy users", stats.total),
        ("Matched", stats.matched),
        ("Updated", stats.updated),
        ("Already set correctly", stats.already_set),
        ("Not found in legacy data", stats.not_found),
        ("Errors", stats.errors),
    ]


def main():
    sys.exit(run_script("Update Summary", run, summary))


if __name__ == "__main__":
    main()
