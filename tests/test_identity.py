"""
Tests for identity.py - deterministic ids for legacy records.
"""

import uuid

import pytest

from osteojob.identity import (
    LEGACY_NAMESPACE,
    SENTINEL_EMPLOYER_ID,
    job_uuid,
    legacy_uuid,
    user_uuid,
)


class TestLegacyUuid:
    """Test legacy id to UUID mapping."""

    def test_same_input_same_uuid(self):
        """Repeated calls must agree."""
        assert user_uuid(42) == user_uuid(42)
        assert job_uuid(501) == job_uuid(501)

    def test_matches_uuid5_of_prefixed_name(self):
        """The id is uuid5 over 'wp-<kind>-<id>' in the fixed namespace."""
        expected = str(uuid.uuid5(LEGACY_NAMESPACE, "wp-user-42"))
        assert user_uuid(42) == expected

    def test_kinds_do_not_collide(self):
        """A user and a job with the same legacy id get different ids."""
        assert user_uuid(7) != job_uuid(7)

    def test_string_and_int_ids_agree(self):
        """The export sometimes carries ids as strings."""
        assert user_uuid("42") == user_uuid(42)

    def test_zero_and_negative_ids(self):
        """Degenerate ids still map to valid UUIDs."""
        for legacy_id in (0, -1):
            value = job_uuid(legacy_id)
            assert uuid.UUID(value).version == 5

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValueError):
            legacy_uuid(1, "post")


class TestSentinel:

    def test_sentinel_is_reserved_value(self):
        assert SENTINEL_EMPLOYER_ID == "00000000-0000-0000-0000-000000000001"

    def test_sentinel_never_derived(self):
        """No small legacy id maps onto the placeholder employer."""
        assert SENTINEL_EMPLOYER_ID not in {user_uuid(i) for i in range(200)}
