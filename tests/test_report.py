"""
Tests for report.py - run summaries.
"""

from osteojob.logger import StructuredLogger
from osteojob.report import log_notes, log_summary
from osteojob.stats import RunStats


def file_logger(tmp_path):
    return StructuredLogger(name="test-report", log_dir=tmp_path, enable_console=False)


def read_log(tmp_path):
    return next(tmp_path.glob("*.log")).read_text()


class TestLogSummary:

    def test_rows_and_duration(self, tmp_path):
        logger = file_logger(tmp_path)
        log_summary(logger, "Upload Summary", [("Inserted", 3), ("Duplicates", 0)], 1.5)

        content = read_log(tmp_path)
        assert "Upload Summary" in content
        assert "Inserted:                 3" in content
        assert "Duration:                 1.50s" in content
        assert content.count("=" * 80) == 3


class TestLogNotes:

    def test_clean_run_is_silent(self, tmp_path):
        logger = file_logger(tmp_path)
        log_notes(logger, RunStats(updated=4))
        assert read_log(tmp_path) == ""

    def test_placeholder_and_alias_notes(self, tmp_path):
        logger = file_logger(tmp_path)
        log_notes(logger, RunStats(used_placeholder=2, alias_unavailable=1))

        content = read_log(tmp_path)
        assert "2 job(s) were assigned to the placeholder employer" in content
        assert "poster_id column not found" in content
