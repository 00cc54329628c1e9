"""
Target store interface.

Responsibilities:
- Paginated reads of a table with projection, stable ``id`` ordering and
  row ranges.
- Upsert keyed on a natural key, update-by-id, delete-by-id.
- Schema capability checks (does a column exist).

Non-Responsibilities:
- No matching, counting or retry policy beyond a single call.

Invariant:
Failures surface as StoreError subclasses; callers decide whether a
failure is fatal.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Sequence, Set

DEFAULT_PAGE_SIZE = 1000


class TargetStore(ABC):

    @abstractmethod
    def fetch_page(self, table: str, columns: Sequence[str], start: int, end: int) -> List[Dict[str, Any]]:
        """Rows ``start``..``end`` (inclusive) ordered by ``id``."""

    @abstractmethod
    def existing_keys(self, table: str, key: str, values: Iterable[Any]) -> Set[str]:
        """Subset of ``values`` already present in ``table.key``, as strings."""

    @abstractmethod
    def upsert(
        self,
        table: str,
        rows: List[Dict[str, Any]],
        on_conflict: str,
        ignore_duplicates: bool = False,
    ) -> int:
        """Insert rows, resolving conflicts on ``on_conflict``; returns rows sent."""

    @abstractmethod
    def update(self, table: str, row_id: str, values: Dict[str, Any]) -> int:
        """Update one row by id; returns the number of rows changed."""

    @abstractmethod
    def delete(self, table: str, row_id: str) -> int:
        """Delete one row by id; returns the number of rows removed."""

    @abstractmethod
    def count(self, table: str) -> int:
        """Number of rows in ``table``."""

    @abstractmethod
    def has_column(self, table: str, column: str) -> bool:
        """Whether ``table`` has ``column``."""

    def fetch_all(
        self,
        table: str,
        columns: Sequence[str],
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> List[Dict[str, Any]]:
        """Read a whole table page by page."""
        rows: List[Dict[str, Any]] = []
        page = 0
        while True:
            start = page * page_size
            data = self.fetch_page(table, columns, start, start + page_size - 1)
            if not data:
                break
            rows.extend(data)
            page += 1
            if len(data) < page_size:
                break
        return rows
