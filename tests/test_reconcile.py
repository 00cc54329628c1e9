"""
Tests for reconcile.py - pointing persisted jobs at their employers.
"""

import pytest

from osteojob.errors import EmptyStoreError
from osteojob.identity import SENTINEL_EMPLOYER_ID, job_uuid, user_uuid
from osteojob.legacy import EmailMapping, LegacyJob
from osteojob.migrate import import_jobs, upload_users
from osteojob.reconcile import (
    DirectIdStrategy,
    EmailStrategy,
    FuzzyStrategy,
    ProfileIndex,
    Reconciler,
    make_strategy,
    reconcile,
)
from osteojob.store import SqlStore
from osteojob.transform import transform_job

EMPLOYER_ID = user_uuid(42)


class NoAliasStore(SqlStore):
    """A schema that never grew the poster_id column."""

    def has_column(self, table, column):
        return column != "poster_id" and super().has_column(table, column)


def employers(store):
    return {row["id"]: row["employer_id"] for row in store.fetch_all("jobs", ["id", "employer_id"])}


def add_unkeyed_job(store, job_id, **fields):
    """Persist a job the way an earlier import without legacy ids did."""
    data = {"id": 0, "title": "Associate Osteopath", "locations": ["United Kingdom"]}
    data.update(fields)
    row = transform_job(LegacyJob.from_dict(data), employer_id=SENTINEL_EMPLOYER_ID).to_row()
    row.update(id=job_id, wordpress_job_id=None)
    store.upsert("jobs", [row], on_conflict="id")


@pytest.fixture
def run(quiet_logger):
    def go(store, strategy, items, **kwargs):
        kwargs.setdefault("pause_seconds", 0)
        return reconcile(store, strategy, items, logger=quiet_logger, **kwargs)
    return go


@pytest.fixture
def loaded_store(sql_store, legacy_users, legacy_jobs, quiet_logger):
    """Jobs imported before their employer existed, then users uploaded."""
    import_jobs(sql_store, legacy_jobs, logger=quiet_logger, pause_seconds=0)
    upload_users(sql_store, legacy_users, logger=quiet_logger, pause_seconds=0)
    return sql_store


class TestProfileIndex:

    def test_lookups(self):
        index = ProfileIndex([
            {"id": "b", "email": "Clinic@X.io", "wordpress_user_id": "42"},
            {"id": "a", "email": "other@x.io", "wordpress_user_id": None},
        ])
        assert index.by_legacy_id(42) == "b"
        assert index.by_email(" clinic@x.io") == "b"
        assert index.by_legacy_id(None) is None
        assert index.with_legacy_id == 1
        assert "a" in index

    def test_lowest_id_wins_on_shared_legacy_id(self):
        index = ProfileIndex([
            {"id": "z", "email": "z@x.io", "wordpress_user_id": "42"},
            {"id": "m", "email": "m@x.io", "wordpress_user_id": "42"},
        ])
        assert index.by_legacy_id("42") == "m"


class TestDirectIdStrategy:

    def test_jobs_moved_off_placeholder(self, loaded_store, legacy_jobs, run):
        assert set(employers(loaded_store).values()) == {SENTINEL_EMPLOYER_ID}

        stats = run(loaded_store, DirectIdStrategy(), legacy_jobs)

        assert stats.total == 2
        assert stats.updated == 2
        assert stats.errors == 0
        assert employers(loaded_store) == {job_uuid(501): EMPLOYER_ID, job_uuid(502): EMPLOYER_ID}

    def test_poster_alias_written(self, loaded_store, legacy_jobs, run):
        run(loaded_store, DirectIdStrategy(), legacy_jobs)
        rows = loaded_store.fetch_all("jobs", ["poster_id"])
        assert {r["poster_id"] for r in rows} == {EMPLOYER_ID}

    def test_idempotent(self, loaded_store, legacy_jobs, run):
        run(loaded_store, DirectIdStrategy(), legacy_jobs)
        first = employers(loaded_store)
        stats = run(loaded_store, DirectIdStrategy(), legacy_jobs)

        assert employers(loaded_store) == first
        assert stats.updated == 2

    def test_unknown_employer_uses_placeholder(self, loaded_store, job_records, run):
        record = dict(job_records[0], meta={}, author_id=999)
        stats = run(loaded_store, DirectIdStrategy(), [LegacyJob.from_dict(record)])

        assert stats.used_placeholder == 1
        assert stats.updated == 1
        assert employers(loaded_store)[job_uuid(501)] == SENTINEL_EMPLOYER_ID

    def test_placeholder_profile_created_on_demand(self, sql_store, legacy_users, legacy_jobs, quiet_logger, run):
        upload_users(sql_store, legacy_users, logger=quiet_logger, pause_seconds=0)
        import_jobs(sql_store, legacy_jobs, logger=quiet_logger, pause_seconds=0)
        assert sql_store.count("profiles") == 3

        orphan = LegacyJob.from_dict({"id": 501, "title": "Associate Osteopath"})
        run(sql_store, DirectIdStrategy(), [orphan])

        ids = {r["id"] for r in sql_store.fetch_all("profiles", ["id"])}
        assert SENTINEL_EMPLOYER_ID in ids

    def test_job_not_in_store(self, loaded_store, run):
        missing = LegacyJob.from_dict({"id": 777, "title": "Ghost", "author_id": 42})
        stats = run(loaded_store, DirectIdStrategy(), [missing])
        assert stats.not_found == 1
        assert stats.updated == 0
        assert stats.exit_code == 0


class TestEmailStrategy:

    def test_case_insensitive_email(self, loaded_store, run):
        mappings = [
            EmailMapping(501, "Associate Osteopath", "  CLINIC@BackCare.co.uk"),
            EmailMapping(502, "Locum Osteopath", "nobody@example.com"),
        ]
        stats = run(loaded_store, EmailStrategy(), mappings)

        assert stats.updated == 2
        assert stats.email_not_found == 1
        assert stats.used_placeholder == 1
        assert employers(loaded_store)[job_uuid(501)] == EMPLOYER_ID

    def test_blank_email_keeps_current_owner(self, sql_store, legacy_users, legacy_jobs, quiet_logger, run):
        upload_users(sql_store, legacy_users, logger=quiet_logger, pause_seconds=0)
        import_jobs(sql_store, legacy_jobs, logger=quiet_logger, pause_seconds=0)

        stats = run(sql_store, EmailStrategy(), [EmailMapping(501, "Associate Osteopath", "  ")])

        assert stats.skipped == 1
        assert stats.updated == 0
        assert stats.used_placeholder == 0
        assert stats.email_not_found == 0
        assert employers(sql_store)[job_uuid(501)] == EMPLOYER_ID

    def test_mapping_without_job(self, loaded_store, run):
        stats = run(loaded_store, EmailStrategy(), [EmailMapping(None, "", "clinic@backcare.co.uk")])
        assert stats.not_found == 1


class TestFuzzyStrategy:

    @pytest.fixture
    def unkeyed_store(self, sql_store, legacy_users, quiet_logger):
        upload_users(sql_store, legacy_users, logger=quiet_logger, pause_seconds=0)
        return sql_store

    def test_country_disambiguates(self, unkeyed_store, run):
        add_unkeyed_job(unkeyed_store, "job-uk", locations=["United Kingdom"])
        add_unkeyed_job(unkeyed_store, "job-ie", locations=["Ireland"])
        legacy = LegacyJob.from_dict({
            "id": 9, "title": "associate osteopath", "locations": ["Ireland"], "author_id": 42,
        })

        stats = run(unkeyed_store, FuzzyStrategy(), [legacy])

        assert stats.updated == 1
        assert stats.multiple_matches == 0
        assert employers(unkeyed_store) == {"job-uk": SENTINEL_EMPLOYER_ID, "job-ie": EMPLOYER_ID}

    def test_multiple_matches_use_lowest_id(self, unkeyed_store, run):
        add_unkeyed_job(unkeyed_store, "job-b")
        add_unkeyed_job(unkeyed_store, "job-a")
        legacy = LegacyJob.from_dict({"id": 9, "title": "Associate Osteopath", "author_id": 42})

        stats = run(unkeyed_store, FuzzyStrategy(), [legacy])

        assert stats.multiple_matches == 1
        assert employers(unkeyed_store)["job-a"] == EMPLOYER_ID
        assert employers(unkeyed_store)["job-b"] == SENTINEL_EMPLOYER_ID

    def test_no_match(self, unkeyed_store, run):
        add_unkeyed_job(unkeyed_store, "job-a")
        legacy = LegacyJob.from_dict({"id": 9, "title": "Receptionist", "author_id": 42})
        assert run(unkeyed_store, FuzzyStrategy(), [legacy]).not_found == 1


class TestReconciler:

    def test_alias_unavailable(self, db_path, legacy_users, legacy_jobs, quiet_logger, run):
        store = NoAliasStore(db_path)
        import_jobs(store, legacy_jobs, logger=quiet_logger, pause_seconds=0)
        upload_users(store, legacy_users, logger=quiet_logger, pause_seconds=0)

        stats = run(store, DirectIdStrategy(), legacy_jobs)

        assert stats.updated == 2
        assert stats.alias_unavailable == 2
        assert {r["poster_id"] for r in store.fetch_all("jobs", ["poster_id"])} == {None}

    def test_empty_store_is_fatal(self, sql_store, legacy_jobs, run):
        with pytest.raises(EmptyStoreError):
            run(sql_store, DirectIdStrategy(), legacy_jobs)

    def test_pacing(self, loaded_store, legacy_jobs, quiet_logger, sleep_calls):
        reconciler = Reconciler(
            loaded_store, DirectIdStrategy(),
            logger=quiet_logger,
            pause_every=1,
            pause_seconds=0.1,
            sleep=sleep_calls.append,
        )
        reconciler.run(legacy_jobs)
        assert sleep_calls == [0.1, 0.1]

    def test_make_strategy(self):
        assert isinstance(make_strategy("fuzzy"), FuzzyStrategy)
        with pytest.raises(ValueError):
            make_strategy("psychic")
