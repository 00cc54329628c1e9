"""
SQL implementation of the target store.

Works against any database holding the profiles/jobs schema; tables are
reflected at startup so a schema without optional columns is handled
the same way the managed backend would handle it.
"""

from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence, Set, Union

from sqlalchemy import MetaData, Table, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..database import get_engine
from ..errors import DuplicateKeyError, MissingColumnError, StoreError
from .base import TargetStore

# Columns an upsert never overwrites on an existing row.
PRESERVED_ON_CONFLICT = ("id", "created_at")

_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": pg_insert,
}


def _is_unique_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig).lower()
    return "unique" in message or "duplicate" in message


class SqlStore(TargetStore):

    def __init__(self, target: Union[str, Path, Engine]):
        self.engine = target if isinstance(target, Engine) else get_engine(target)
        self.metadata = MetaData()
        try:
            self.metadata.reflect(bind=self.engine)
        except SQLAlchemyError as e:
            raise StoreError(f"Cannot read database schema: {e}") from e

    def _table(self, name: str) -> Table:
        table = self.metadata.tables.get(name)
        if table is None:
            raise StoreError(f"Unknown table: {name}")
        return table

    def _check_columns(self, table: Table, columns: Iterable[str]) -> None:
        missing = sorted(set(columns) - set(table.c.keys()))
        if missing:
            raise MissingColumnError(
                f"Column(s) {', '.join(missing)} not found on {table.name}"
            )

    def fetch_page(self, table: str, columns: Sequence[str], start: int, end: int) -> List[Dict[str, Any]]:
        t = self._table(table)
        self._check_columns(t, columns)
        stmt = (
            select(*[t.c[c] for c in columns])
            .order_by(t.c.id)
            .offset(start)
            .limit(end - start + 1)
        )
        try:
            with self.engine.connect() as conn:
                return [dict(row._mapping) for row in conn.execute(stmt)]
        except SQLAlchemyError as e:
            raise StoreError(f"Read from {table} failed: {e}") from e

    def existing_keys(self, table: str, key: str, values: Iterable[Any]) -> Set[str]:
        t = self._table(table)
        self._check_columns(t, [key])
        values = [v for v in values if v is not None]
        if not values:
            return set()
        stmt = select(t.c[key]).where(t.c[key].in_(values))
        try:
            with self.engine.connect() as conn:
                return {str(row[0]) for row in conn.execute(stmt)}
        except SQLAlchemyError as e:
            raise StoreError(f"Key lookup on {table}.{key} failed: {e}") from e

    def upsert(
        self,
        table: str,
        rows: List[Dict[str, Any]],
        on_conflict: str,
        ignore_duplicates: bool = False,
    ) -> int:
        if not rows:
            return 0
        t = self._table(table)
        columns = set().union(*(row.keys() for row in rows))
        self._check_columns(t, columns | {on_conflict})

        insert = _INSERTS.get(self.engine.dialect.name)
        if insert is None:
            raise StoreError(f"Upsert is not supported on {self.engine.dialect.name}")

        stmt = insert(t)
        updatable = sorted(columns - {on_conflict, *PRESERVED_ON_CONFLICT})
        if ignore_duplicates or not updatable:
            stmt = stmt.on_conflict_do_nothing(index_elements=[on_conflict])
        else:
            stmt = stmt.on_conflict_do_update(
                index_elements=[on_conflict],
                set_={c: stmt.excluded[c] for c in updatable},
            )

        try:
            with self.engine.begin() as conn:
                conn.execute(stmt, rows)
        except IntegrityError as e:
            if _is_unique_violation(e):
                raise DuplicateKeyError(str(e.orig), code="23505") from e
            raise StoreError(f"Upsert into {table} rejected: {e.orig}") from e
        except SQLAlchemyError as e:
            raise StoreError(f"Upsert into {table} failed: {e}") from e
        return len(rows)

    def update(self, table: str, row_id: str, values: Dict[str, Any]) -> int:
        t = self._table(table)
        self._check_columns(t, values.keys())
        stmt = t.update().where(t.c.id == row_id).values(**values)
        try:
            with self.engine.begin() as conn:
                return conn.execute(stmt).rowcount
        except SQLAlchemyError as e:
            raise StoreError(f"Update of {table} {row_id} failed: {e}") from e

    def delete(self, table: str, row_id: str) -> int:
        t = self._table(table)
        stmt = t.delete().where(t.c.id == row_id)
        try:
            with self.engine.begin() as conn:
                return conn.execute(stmt).rowcount
        except SQLAlchemyError as e:
            raise StoreError(f"Delete from {table} failed: {e}") from e

    def count(self, table: str) -> int:
        t = self._table(table)
        try:
            with self.engine.connect() as conn:
                return conn.execute(select(func.count()).select_from(t)).scalar_one()
        except SQLAlchemyError as e:
            raise StoreError(f"Count of {table} failed: {e}") from e

    def has_column(self, table: str, column: str) -> bool:
        t = self.metadata.tables.get(table)
        return t is not None and column in t.c
