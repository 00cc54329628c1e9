#!/usr/bin/env python3
"""
Verify target store credentials and permissions.

Reads the profiles table, inserts a throwaway profile and deletes it again.

Usage:
    python scripts/check_connection.py
"""

from pathlib import Path
import sys

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from osteojob.env import Settings, load_env
from osteojob.errors import MigrationError
from osteojob.logger import get_logger
from osteojob.migrate import check_connection
from osteojob.store import open_store


def main():
    load_env()
    logger = get_logger()
    logger.info("Testing target store connection...")
    try:
        settings = Settings.from_env()
        if settings.database_url:
            logger.info(f"  Database: {settings.database_url}")
        else:
            logger.info(f"  URL: {settings.supabase_url}")
            logger.info(f"  Key: {settings.masked_key()}")
        store = open_store(settings)
    except MigrationError as e:
        logger.critical(f"Error: {e}")
        sys.exit(1)

    if check_connection(store, logger):
        logger.info("All checks passed! Ready to upload users.")
        sys.exit(0)
    logger.error("Connection test failed. Please check your credentials and permissions.")
    sys.exit(1)


if __name__ == "__main__":
    main()
