"""Console summaries for migration runs."""

from typing import Iterable, Tuple

from .identity import SENTINEL_EMPLOYER_ID
from .logger import StructuredLogger
from .stats import RunStats

SUMMARY_WIDTH = 80


def log_summary(
    logger: StructuredLogger,
    title: str,
    rows: Iterable[Tuple[str, object]],
    duration: float,
) -> None:
    logger.rule(SUMMARY_WIDTH)
    logger.info(title)
    logger.rule(SUMMARY_WIDTH)
    for label, value in rows:
        logger.info(f"{label + ':':<26}{value}")
    logger.info(f"{'Duration:':<26}{duration:.2f}s")
    logger.rule(SUMMARY_WIDTH)


def log_notes(logger: StructuredLogger, stats: RunStats) -> None:
    """Explain the non-error outcomes that still deserve a look."""
    if stats.alias_unavailable:
        logger.info("Note: poster_id column not found; only employer_id was updated.")
        logger.info("  Add the column and re-run to populate it.")

    if stats.used_placeholder:
        logger.warning(
            f"Note: {stats.used_placeholder} job(s) were assigned to the placeholder "
            f"employer {SENTINEL_EMPLOYER_ID}."
        )
        logger.warning("  Fix the profiles' legacy ids or emails, then re-run.")

    if stats.multiple_matches:
        logger.warning("Note: some jobs had multiple matches; the lowest id was used.")

    if stats.not_found:
        logger.warning(f"Note: {stats.not_found} item(s) had no counterpart in the database.")

    if stats.errors:
        logger.warning("Some errors occurred. Please check the logs above.")
