"""
Supabase implementation of the target store.

Talks to the managed backend's REST layer through the official client.
Transport hiccups are retried with backoff; PostgREST errors are mapped
onto the StoreError hierarchy by SQLSTATE / PostgREST code. Any other
failure the client raises becomes a plain StoreError.
"""

import time
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Set

from postgrest.exceptions import APIError
from supabase import Client, create_client

from ..errors import DuplicateKeyError, MissingColumnError, StoreError
from ..retry import exponential_backoff, is_transient_error
from .base import TargetStore

UNIQUE_VIOLATION = "23505"
UNDEFINED_COLUMN_CODES = {"42703", "PGRST204"}


def _jsonable(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        k: v.isoformat() if isinstance(v, (datetime, date)) else v
        for k, v in row.items()
    }


def _retryable(exc: Exception) -> bool:
    return not isinstance(exc, APIError) and is_transient_error(exc)


def translate_error(exc: APIError, action: str) -> StoreError:
    """Map a PostgREST error onto the StoreError hierarchy."""
    code = str(exc.code) if exc.code is not None else None
    message = f"{action}: {exc.message}"
    if code == UNIQUE_VIOLATION or "duplicate" in (exc.message or "").lower():
        return DuplicateKeyError(message, code=code)
    if code in UNDEFINED_COLUMN_CODES:
        return MissingColumnError(message, code=code)
    return StoreError(message, code=code)


class SupabaseStore(TargetStore):

    def __init__(
        self,
        url: Optional[str] = None,
        key: Optional[str] = None,
        client: Optional[Client] = None,
        max_retries: int = 3,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            url: Project URL
            key: Service-role (or anon) key
            client: Pre-built client, used instead of url/key
            max_retries: Retries for transient transport failures
            sleep: Function used to wait between retries
        """
        if client is None:
            if not url or not key:
                raise StoreError("Supabase URL and key are required")
            client = create_client(url, key)
        self.client = client
        self._execute = exponential_backoff(
            max_retries=max_retries,
            base_delay=0.5,
            max_delay=8.0,
            retry_if=_retryable,
            sleep=sleep,
        )(lambda query: query.execute())

    def _run(self, query, action: str):
        try:
            return self._execute(query)
        except APIError as e:
            raise translate_error(e, action) from e
        except Exception as e:
            raise StoreError(f"{action}: {e}") from e

    def fetch_page(self, table: str, columns: Sequence[str], start: int, end: int) -> List[Dict[str, Any]]:
        query = (
            self.client.table(table)
            .select(",".join(columns))
            .order("id")
            .range(start, end)
        )
        response = self._run(query, f"Read from {table}")
        return response.data or []

    def existing_keys(self, table: str, key: str, values: Iterable[Any]) -> Set[str]:
        values = [str(v) for v in values if v is not None]
        if not values:
            return set()
        query = self.client.table(table).select(key).in_(key, values)
        response = self._run(query, f"Key lookup on {table}.{key}")
        return {str(row[key]) for row in response.data or [] if row.get(key) is not None}

    def upsert(
        self,
        table: str,
        rows: List[Dict[str, Any]],
        on_conflict: str,
        ignore_duplicates: bool = False,
    ) -> int:
        if not rows:
            return 0
        query = self.client.table(table).upsert(
            [_jsonable(row) for row in rows],
            on_conflict=on_conflict,
            ignore_duplicates=ignore_duplicates,
        )
        self._run(query, f"Upsert into {table}")
        return len(rows)

    def update(self, table: str, row_id: str, values: Dict[str, Any]) -> int:
        query = self.client.table(table).update(_jsonable(values)).eq("id", row_id)
        response = self._run(query, f"Update of {table} {row_id}")
        return len(response.data or [])

    def delete(self, table: str, row_id: str) -> int:
        query = self.client.table(table).delete().eq("id", row_id)
        response = self._run(query, f"Delete from {table}")
        return len(response.data or [])

    def count(self, table: str) -> int:
        query = self.client.table(table).select("id", count="exact").limit(1)
        response = self._run(query, f"Count of {table}")
        return response.count or 0

    def has_column(self, table: str, column: str) -> bool:
        try:
            self._run(self.client.table(table).select(column).limit(1), f"Probe {table}.{column}")
        except MissingColumnError:
            return False
        return True
