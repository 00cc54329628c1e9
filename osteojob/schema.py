from typing import List

from .legacy import LegacyJob, LegacyUser
from .normalize import legacy_key


def _is_non_empty_str(v) -> bool:
    return isinstance(v, str) and v.strip() != ""


def validate_legacy_user(user: LegacyUser) -> List[str]:
    """
    Returns a list of reasons the user cannot be persisted. Empty list means valid.
    Only the fields the store requires are checked; everything else has a fallback.
    """
    errors: List[str] = []

    if legacy_key(user.id) is None:
        errors.append("Missing required field: id")

    if not _is_non_empty_str(user.email):
        errors.append("Missing required field: email")
    elif "@" not in user.email:
        errors.append("Field 'email' must be an email address")

    return errors


def validate_legacy_job(job: LegacyJob) -> List[str]:
    """Returns a list of reasons the job cannot be persisted."""
    errors: List[str] = []

    if legacy_key(job.id) is None:
        errors.append("Missing required field: id")

    if not _is_non_empty_str(job.title):
        errors.append("Missing required field: title")

    return errors
