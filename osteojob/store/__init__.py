from ..env import Settings
from .base import DEFAULT_PAGE_SIZE, TargetStore
from .sql import SqlStore


def open_store(settings: Settings) -> TargetStore:
    """SQL store when a database URL is configured, Supabase otherwise."""
    if settings.database_url:
        return SqlStore(settings.database_url)

    from .supabase_store import SupabaseStore
    return SupabaseStore(settings.supabase_url, settings.supabase_key)


__all__ = ["DEFAULT_PAGE_SIZE", "TargetStore", "SqlStore", "open_store"]
