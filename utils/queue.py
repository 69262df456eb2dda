from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from utils.directions import CONCRETE_DIRECTIONS, Direction, prompt_and_answer, resolve_directions
from utils.sm2 import ProgressRecord

NOTIFICATION_FALLBACK_POOL = 20
MASTERED_MIN_REPETITIONS = 5
MASTERED_MIN_INTERVAL_DAYS = 30


@dataclass(frozen=True)
class QueueEntry:
    item_id: int
    direction: Direction
    source_text: str
    target_text: str
    example_source: Optional[str]
    example_target: Optional[str]
    pronunciation: Optional[str]
    level: str
    category: str
    package_id: str
    progress: Optional[ProgressRecord] = None

    @property
    def is_new(self) -> bool:
        return self.progress is None

    @property
    def prompt(self) -> str:
        return prompt_and_answer(self.direction, self.source_text, self.target_text)[0]

    @property
    def answer(self) -> str:
        return prompt_and_answer(self.direction, self.source_text, self.target_text)[1]


_ENTRY_COLUMNS = """
    i.id AS item_id,
    s.direction AS direction,
    i.source_text,
    i.target_text,
    i.example_source,
    i.example_target,
    i.pronunciation,
    i.level,
    i.category,
    i.package_id,
    p.item_id AS progress_item_id,
    p.repetitions,
    p.ease_factor,
    p.interval_days,
    p.due_at,
    p.last_reviewed_at
"""

_ELIGIBLE_FROM = """
    FROM selections s
    JOIN items i ON i.id = s.item_id
    LEFT JOIN progress p
        ON p.owner_id = s.owner_id AND p.item_id = s.item_id AND p.direction = s.direction
    WHERE s.owner_id = ?
        AND s.status = 'selected'
        AND s.direction IN ({placeholders})
        AND (i.reversible = 1 OR s.direction = 'source_to_target')
"""


def _eligible_from(directions: Sequence[Direction]) -> Tuple[str, List[str]]:
    placeholders = ",".join("?" for _ in directions)
    return _ELIGIBLE_FROM.format(placeholders=placeholders), [d.value for d in directions]


def _row_to_entry(row) -> QueueEntry:
    direction = Direction(row["direction"])
    progress = None
    if row["progress_item_id"] is not None:
        progress = ProgressRecord(
            item_id=int(row["item_id"]),
            direction=direction,
            repetitions=int(row["repetitions"]),
            ease_factor=float(row["ease_factor"]),
            interval_days=int(row["interval_days"]),
            due_at=int(row["due_at"]),
            last_reviewed_at=row["last_reviewed_at"],
        )
    return QueueEntry(
        item_id=int(row["item_id"]),
        direction=direction,
        source_text=row["source_text"],
        target_text=row["target_text"],
        example_source=row["example_source"],
        example_target=row["example_target"],
        pronunciation=row["pronunciation"],
        level=row["level"],
        category=row["category"],
        package_id=row["package_id"],
        progress=progress,
    )


def build_queue(conn, owner_id: str, direction: Direction, now_ms: int, limit: int) -> List[QueueEntry]:
    """Items to study right now: overdue reviews, most overdue first, then new items.

    Records due after ``now_ms`` are left out. One read-only statement, so the
    result is a consistent snapshot even while answers are being written.
    """
    if limit <= 0:
        return []
    from_clause, direction_params = _eligible_from(resolve_directions(direction))
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT {_ENTRY_COLUMNS}
        {from_clause}
            AND (p.item_id IS NULL OR p.due_at <= ?)
        ORDER BY
            CASE WHEN p.item_id IS NULL THEN 1 ELSE 0 END,
            p.due_at ASC,
            i.position ASC,
            i.id ASC,
            s.direction ASC
        LIMIT ?
        """,
        (owner_id, *direction_params, now_ms, limit),
    )
    return [_row_to_entry(row) for row in cursor.fetchall()]


def has_eligible_items(conn, owner_id: str, direction: Direction, now_ms: int) -> bool:
    from_clause, direction_params = _eligible_from(resolve_directions(direction))
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT EXISTS (
            SELECT 1
            {from_clause}
                AND (p.item_id IS NULL OR p.due_at <= ?)
        )
        """,
        (owner_id, *direction_params, now_ms),
    )
    return bool(cursor.fetchone()[0])


def count_overdue(conn, owner_id: str, direction: Direction, now_ms: int) -> int:
    from_clause, direction_params = _eligible_from(resolve_directions(direction))
    cursor = conn.cursor()
    cursor.execute(
        f"SELECT COUNT(*) {from_clause} AND p.item_id IS NOT NULL AND p.due_at <= ?",
        (owner_id, *direction_params, now_ms),
    )
    return int(cursor.fetchone()[0])


def count_new(conn, owner_id: str, direction: Direction) -> int:
    from_clause, direction_params = _eligible_from(resolve_directions(direction))
    cursor = conn.cursor()
    cursor.execute(
        f"SELECT COUNT(*) {from_clause} AND p.item_id IS NULL",
        (owner_id, *direction_params),
    )
    return int(cursor.fetchone()[0])


def count_selected(conn, owner_id: str) -> int:
    cursor = conn.cursor()
    cursor.execute(
        "SELECT COUNT(DISTINCT item_id) FROM selections WHERE owner_id = ? AND status = 'selected'",
        (owner_id,),
    )
    return int(cursor.fetchone()[0])


def count_mastered(conn, owner_id: str, direction: Direction) -> int:
    """Pairs marked mastered by hand, plus selected pairs whose schedule shows them learned.

    A pair counts as learned after 5 successful repetitions and a 30-day interval.
    """
    directions = [d.value for d in resolve_directions(direction)]
    placeholders = ",".join("?" for _ in directions)
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT COUNT(*)
        FROM selections s
        LEFT JOIN progress p
            ON p.owner_id = s.owner_id AND p.item_id = s.item_id AND p.direction = s.direction
        WHERE s.owner_id = ?
            AND s.direction IN ({placeholders})
            AND (
                s.status = 'mastered'
                OR (s.status = 'selected' AND p.repetitions >= ? AND p.interval_days >= ?)
            )
        """,
        (owner_id, *directions, MASTERED_MIN_REPETITIONS, MASTERED_MIN_INTERVAL_DAYS),
    )
    return int(cursor.fetchone()[0])


def pick_notification_item(
    conn,
    owner_id: str,
    now_ms: int,
    top_k: int = 10,
    rng: Optional[random.Random] = None,
) -> Optional[QueueEntry]:
    """An item worth a reminder: random among the top-K most overdue, else any selected item."""
    rng = rng or random.Random()
    overdue = [
        entry
        for entry in build_queue(conn, owner_id, Direction.MIXED, now_ms, max(top_k, 1))
        if not entry.is_new
    ]
    if overdue:
        return rng.choice(overdue)
    from_clause, direction_params = _eligible_from(CONCRETE_DIRECTIONS)
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT {_ENTRY_COLUMNS}
        {from_clause}
        ORDER BY i.position ASC, i.id ASC, s.direction ASC
        LIMIT ?
        """,
        (owner_id, *direction_params, NOTIFICATION_FALLBACK_POOL),
    )
    candidates = [_row_to_entry(row) for row in cursor.fetchall()]
    if not candidates:
        return None
    return rng.choice(candidates)
