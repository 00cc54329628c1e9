"""
Fill the legacy user id back-reference on stored profiles.

Profiles created outside the bulk loader (sign-ups, earlier imports) have
no ``wordpress_user_id``; the direct-id and fuzzy reconcilers need it.
Profiles are matched to legacy users by normalized email.
"""

import time
from typing import Callable, Dict, List, Optional, Sequence

from .errors import StoreError
from .legacy import LegacyUser
from .logger import StructuredLogger, get_logger
from .normalize import legacy_key, normalize_email
from .stats import RunStats
from .store import DEFAULT_PAGE_SIZE, TargetStore

PROFILE_COLUMNS = ("id", "email", "wordpress_user_id")


def index_users_by_email(users: Sequence[LegacyUser]) -> Dict[str, LegacyUser]:
    """Later users win on repeated emails, matching the export's own order."""
    by_email = {}
    for user in users:
        email = normalize_email(user.email)
        if email:
            by_email[email] = user
    return by_email


def link_legacy_user_ids(
    store: TargetStore,
    users: Sequence[LegacyUser],
    logger: Optional[StructuredLogger] = None,
    page_size: int = DEFAULT_PAGE_SIZE,
    pause_every: int = 10,
    pause_seconds: float = 0.1,
    sleep: Callable[[float], None] = time.sleep,
) -> RunStats:
    """
    Set ``profiles.wordpress_user_id`` wherever a legacy user shares the email.

    Returns:
        RunStats with matched, already_set, updated, not_found and errors
    """
    logger = logger or get_logger()
    profiles = store.fetch_all("profiles", PROFILE_COLUMNS, page_size)
    logger.info(f"Loaded {len(profiles)} profiles")

    by_email = index_users_by_email(users)
    stats = RunStats(total=len(users))
    pending: List[tuple] = []
    not_found: List[str] = []

    for profile in profiles:
        email = normalize_email(profile.get("email"))
        user = by_email.get(email)
        if user is None:
            not_found.append(email)
            continue
        stats = stats + RunStats(matched=1)
        if legacy_key(profile.get("wordpress_user_id")) == legacy_key(user.id):
            stats = stats + RunStats(already_set=1)
            continue
        pending.append((profile, user))

    stats = stats + RunStats(not_found=len(not_found))
    logger.info(
        f"Matched {stats.matched}, already set {stats.already_set}, "
        f"need update {len(pending)}, not found {len(not_found)}"
    )
    for email in not_found[:5]:
        logger.debug(f"  No legacy user for {email}")

    for processed, (profile, user) in enumerate(pending, 1):
        prefix = f"[{processed}/{len(pending)}]"
        try:
            changed = store.update("profiles", profile["id"], {"wordpress_user_id": legacy_key(user.id)})
        except StoreError as e:
            logger.error(f"{prefix} Error updating {profile.get('email')}: {e}")
            stats = stats + RunStats(errors=1)
        else:
            if changed:
                logger.info(f"{prefix} Updated {profile.get('email')} -> legacy id {user.id}")
                stats = stats + RunStats(updated=1)
            else:
                logger.error(f"{prefix} Update of {profile.get('email')} matched no rows")
                stats = stats + RunStats(errors=1)

        if pause_every and processed % pause_every == 0 and pause_seconds:
            sleep(pause_seconds)

    return stats
