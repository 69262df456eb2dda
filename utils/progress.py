from __future__ import annotations

from typing import List, Optional

from utils.directions import Direction, require_concrete
from utils.sm2 import ProgressRecord


def _row_to_record(row) -> ProgressRecord:
    return ProgressRecord(
        item_id=int(row["item_id"]),
        direction=Direction(row["direction"]),
        repetitions=int(row["repetitions"]),
        ease_factor=float(row["ease_factor"]),
        interval_days=int(row["interval_days"]),
        due_at=int(row["due_at"]),
        last_reviewed_at=row["last_reviewed_at"],
    )


def get_progress(conn, owner_id: str, item_id: int, direction: Direction) -> Optional[ProgressRecord]:
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT item_id, direction, repetitions, ease_factor, interval_days, due_at, last_reviewed_at
        FROM progress
        WHERE owner_id = ? AND item_id = ? AND direction = ?
        """,
        (owner_id, item_id, require_concrete(direction).value),
    )
    row = cursor.fetchone()
    if not row:
        return None
    return _row_to_record(row)


def list_progress(conn, owner_id: str, item_id: Optional[int] = None) -> List[ProgressRecord]:
    cursor = conn.cursor()
    if item_id is None:
        cursor.execute(
            """
            SELECT item_id, direction, repetitions, ease_factor, interval_days, due_at, last_reviewed_at
            FROM progress
            WHERE owner_id = ?
            ORDER BY due_at ASC, item_id ASC, direction ASC
            """,
            (owner_id,),
        )
    else:
        cursor.execute(
            """
            SELECT item_id, direction, repetitions, ease_factor, interval_days, due_at, last_reviewed_at
            FROM progress
            WHERE owner_id = ? AND item_id = ?
            ORDER BY direction ASC
            """,
            (owner_id, item_id),
        )
    return [_row_to_record(row) for row in cursor.fetchall()]


def upsert_progress(conn, owner_id: str, record: ProgressRecord) -> None:
    """Replace the stored record for the record's (item, direction) key.

    Callers own the transaction; see utils.daily.record_answer.
    """
    cursor = conn.cursor()
    cursor.execute(
        """
        INSERT INTO progress (
            owner_id,
            item_id,
            direction,
            repetitions,
            ease_factor,
            interval_days,
            due_at,
            last_reviewed_at
        )
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(owner_id, item_id, direction) DO UPDATE SET
            repetitions = excluded.repetitions,
            ease_factor = excluded.ease_factor,
            interval_days = excluded.interval_days,
            due_at = excluded.due_at,
            last_reviewed_at = excluded.last_reviewed_at
        """,
        (
            owner_id,
            record.item_id,
            require_concrete(record.direction).value,
            record.repetitions,
            record.ease_factor,
            record.interval_days,
            record.due_at,
            record.last_reviewed_at,
        ),
    )
