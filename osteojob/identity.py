"""
Deterministic identifiers for migrated records.

A legacy numeric id always maps to the same UUID, so re-running any pass
over the same export never invents new identities.
"""

import uuid

# Fixed namespace for every legacy-derived id. Changing it re-keys the store.
LEGACY_NAMESPACE = uuid.UUID("6ba7b810-9dad-11d1-80b4-00c04fd430c8")

# Placeholder owner for jobs whose employer cannot be resolved.
SENTINEL_EMPLOYER_ID = "00000000-0000-0000-0000-000000000001"

KINDS = ("user", "job")


def legacy_uuid(legacy_id, kind: str = "user") -> str:
    """
    Derive the target id for a legacy record.

    Args:
        legacy_id: Legacy identifier (any value, including 0 or negatives)
        kind: "user" or "job"

    Returns:
        UUID string, stable across runs and processes
    """
    if kind not in KINDS:
        raise ValueError(f"Unknown record kind: {kind!r}")
    return str(uuid.uuid5(LEGACY_NAMESPACE, f"wp-{kind}-{legacy_id}"))


def user_uuid(legacy_id) -> str:
    return legacy_uuid(legacy_id, "user")


def job_uuid(legacy_id) -> str:
    return legacy_uuid(legacy_id, "job")
