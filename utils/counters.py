from __future__ import annotations

import logging
from datetime import date
from typing import Dict, Mapping, Optional, Sequence, Tuple, Union

from db.database import write_transaction
from utils.errors import InvalidInputError

logger = logging.getLogger(__name__)

DateLike = Union[date, str]


def date_key(value: DateLike) -> str:
    if isinstance(value, date):
        return value.isoformat()
    try:
        return date.fromisoformat(value).isoformat()
    except (TypeError, ValueError):
        raise InvalidInputError(f"Expected an ISO date (YYYY-MM-DD), got {value!r}") from None


class DateCounter:
    """A monotonically incremented counter per calendar date in one table column.

    Rows are keyed by ``scope_columns`` plus ``date`` and created on first increment.
    Table and column names are fixed by the code that builds the counter, never by
    request input.
    """

    def __init__(self, table: str, column: str, scope_columns: Sequence[str] = ("owner_id",)):
        self.table = table
        self.column = column
        self.scope_columns = tuple(scope_columns)

    def _scope_values(self, scope: Mapping[str, str]) -> Tuple[str, ...]:
        missing = [name for name in self.scope_columns if name not in scope]
        if missing:
            raise InvalidInputError(f"Missing counter scope: {', '.join(missing)}")
        return tuple(str(scope[name]) for name in self.scope_columns)

    def _scope_clause(self) -> str:
        return " AND ".join(f"{name} = ?" for name in self.scope_columns)

    def get_count(self, conn, scope: Mapping[str, str], day: DateLike) -> int:
        cursor = conn.cursor()
        cursor.execute(
            f"SELECT {self.column} FROM {self.table} WHERE {self._scope_clause()} AND date = ?",
            (*self._scope_values(scope), date_key(day)),
        )
        row = cursor.fetchone()
        return int(row[0]) if row else 0

    def increment(self, conn, scope: Mapping[str, str], day: DateLike, amount: int = 1) -> int:
        """Add ``amount`` (>= 0) to the day's counter, creating the row if needed; return the new value."""
        if amount < 0:
            raise InvalidInputError("Counters never decrease")
        columns = (*self.scope_columns, "date", self.column)
        placeholders = ", ".join("?" for _ in columns)
        conflict = ", ".join((*self.scope_columns, "date"))
        values = (*self._scope_values(scope), date_key(day), amount)
        with write_transaction(conn):
            conn.execute(
                f"""
                INSERT INTO {self.table} ({", ".join(columns)})
                VALUES ({placeholders})
                ON CONFLICT({conflict}) DO UPDATE SET
                    {self.column} = {self.column} + excluded.{self.column}
                """,
                values,
            )
            return self.get_count(conn, scope, day)

    def counts_between(self, conn, scope: Mapping[str, str], start: DateLike, end: DateLike) -> Dict[str, int]:
        """Counts for rows with start <= date <= end, keyed by ISO date."""
        cursor = conn.cursor()
        cursor.execute(
            f"""
            SELECT date, {self.column} FROM {self.table}
            WHERE {self._scope_clause()} AND date >= ? AND date <= ?
            ORDER BY date
            """,
            (*self._scope_values(scope), date_key(start), date_key(end)),
        )
        return {row[0]: int(row[1]) for row in cursor.fetchall()}

    def recent(self, conn, scope: Mapping[str, str], limit: int = 30) -> Dict[str, int]:
        """The latest ``limit`` rows, newest first, keyed by ISO date."""
        if limit <= 0:
            return {}
        cursor = conn.cursor()
        cursor.execute(
            f"""
            SELECT date, {self.column} FROM {self.table}
            WHERE {self._scope_clause()}
            ORDER BY date DESC
            LIMIT ?
            """,
            (*self._scope_values(scope), limit),
        )
        return {row[0]: int(row[1]) for row in cursor.fetchall()}

    def total(self, conn, scope: Mapping[str, str]) -> int:
        cursor = conn.cursor()
        cursor.execute(
            f"SELECT COALESCE(SUM({self.column}), 0) FROM {self.table} WHERE {self._scope_clause()}",
            self._scope_values(scope),
        )
        return int(cursor.fetchone()[0])

    def purge_older_than(self, conn, cutoff: DateLike, scope: Optional[Mapping[str, str]] = None) -> int:
        """Delete rows dated strictly before ``cutoff``.

        ``scope`` may name any subset of the scope columns; rows of every other
        scope value are purged as well. Without it all rows are purged.
        """
        params: Tuple = (date_key(cutoff),)
        where = "date < ?"
        if scope:
            unknown = [name for name in scope if name not in self.scope_columns]
            if unknown:
                raise InvalidInputError(f"Unknown counter scope: {', '.join(unknown)}")
            names = [name for name in self.scope_columns if name in scope]
            where = " AND ".join([*(f"{name} = ?" for name in names), where])
            params = (*(str(scope[name]) for name in names), *params)
        with write_transaction(conn):
            cursor = conn.execute(f"DELETE FROM {self.table} WHERE {where}", params)
            deleted = cursor.rowcount
        logger.info("Purged %s %s rows older than %s", deleted, self.table, date_key(cutoff))
        return deleted
