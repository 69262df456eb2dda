from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Optional

from db.database import write_transaction
from utils.counters import DateCounter, DateLike
from utils.directions import Direction, directions_for_item, parse_direction, require_concrete
from utils.errors import InvalidInputError, NotFoundError
from utils.progress import get_progress, upsert_progress
from utils.sessions import add_session_answer, count_sessions_on
from utils.sm2 import PASSING_QUALITY, ProgressRecord, grade, validate_quality

logger = logging.getLogger(__name__)

DEFAULT_STREAK_LOOKBACK_DAYS = 365

WORDS_STUDIED = DateCounter("daily_stats", "words_studied")
CORRECT_ANSWERS = DateCounter("daily_stats", "correct_answers")


@dataclass(frozen=True)
class AnswerOutcome:
    progress: ProgressRecord
    date: str
    words_studied_today: int
    daily_goal: Optional[int]
    goal_reached: bool
    session_id: Optional[int] = None


@dataclass(frozen=True)
class DailyStat:
    date: str
    words_studied: int
    correct_answers: int


@dataclass(frozen=True)
class TodayStats:
    date: str
    words_studied: int
    correct_answers: int
    daily_goal: int
    percentage: int
    sessions: int
    goal_reached: bool


def local_date(now_ms: int) -> date:
    """Calendar date of an instant in the process's local timezone."""
    return datetime.fromtimestamp(now_ms / 1000).date()


def goal_percentage(count: int, daily_goal: int) -> int:
    if daily_goal <= 0:
        return 100
    return min(100, int(count * 100 / daily_goal))


def record_answer(
    conn,
    *,
    owner_id: str,
    item_id: int,
    direction: Direction,
    quality: int,
    now_ms: int,
    session_id: Optional[int] = None,
    daily_goal: Optional[int] = None,
    today: Optional[date] = None,
) -> AnswerOutcome:
    """Grade one answer and book it: progress row, daily counters and session counts.

    Everything happens in a single write transaction, so either the new progress
    and the counter increment are both visible or neither is.
    """
    direction = require_concrete(parse_direction(direction))
    quality = validate_quality(quality)
    today = today or local_date(now_ms)
    scope = {"owner_id": owner_id}
    passed = quality >= PASSING_QUALITY
    with write_transaction(conn):
        cursor = conn.cursor()
        cursor.execute("SELECT id, reversible FROM items WHERE id = ?", (item_id,))
        item_row = cursor.fetchone()
        if not item_row:
            raise NotFoundError(f"Item {item_id} not found")
        if direction not in directions_for_item(direction, bool(item_row["reversible"])):
            raise InvalidInputError(f"Item {item_id} can only be studied source to target")
        current = get_progress(conn, owner_id, item_id, direction)
        updated = grade(current, quality, now_ms=now_ms, item_id=item_id, direction=direction)
        upsert_progress(conn, owner_id, updated)
        words_today = WORDS_STUDIED.increment(conn, scope, today)
        if passed:
            CORRECT_ANSWERS.increment(conn, scope, today)
        if session_id is not None:
            add_session_answer(conn, session_id, owner_id, passed)
    logger.debug(
        "Graded item %s (%s) q=%s: reps=%s interval=%sd",
        item_id, direction.value, quality, updated.repetitions, updated.interval_days,
    )
    return AnswerOutcome(
        progress=updated,
        date=today.isoformat(),
        words_studied_today=words_today,
        daily_goal=daily_goal,
        goal_reached=daily_goal is not None and words_today >= daily_goal,
        session_id=session_id,
    )


def words_studied_on(conn, owner_id: str, day: DateLike) -> int:
    return WORDS_STUDIED.get_count(conn, {"owner_id": owner_id}, day)


def is_goal_reached(conn, owner_id: str, daily_goal: int, today: date) -> bool:
    return words_studied_on(conn, owner_id, today) >= daily_goal


def today_stats(conn, owner_id: str, daily_goal: int, today: date) -> TodayStats:
    scope = {"owner_id": owner_id}
    words = WORDS_STUDIED.get_count(conn, scope, today)
    return TodayStats(
        date=today.isoformat(),
        words_studied=words,
        correct_answers=CORRECT_ANSWERS.get_count(conn, scope, today),
        daily_goal=daily_goal,
        percentage=goal_percentage(words, daily_goal),
        sessions=count_sessions_on(conn, owner_id, today),
        goal_reached=words >= daily_goal,
    )


def streak_length(
    conn,
    owner_id: str,
    today: date,
    max_lookback_days: int = DEFAULT_STREAK_LOOKBACK_DAYS,
) -> int:
    """Consecutive studied days ending today or yesterday.

    Today without activity yet does not break the streak; the first past day
    with no counter (or a zero one) does. The result never exceeds
    ``max_lookback_days``: today plus at most ``max_lookback_days - 1`` past days.
    """
    if max_lookback_days <= 0:
        return 0
    earliest = today - timedelta(days=max_lookback_days)
    counts = WORDS_STUDIED.counts_between(conn, {"owner_id": owner_id}, earliest, today)
    streak = 1 if counts.get(today.isoformat(), 0) > 0 else 0
    day = today - timedelta(days=1)
    while day > earliest and counts.get(day.isoformat(), 0) > 0:
        streak += 1
        day -= timedelta(days=1)
    return streak


def purge_daily_stats_older_than(conn, cutoff: DateLike) -> int:
    return WORDS_STUDIED.purge_older_than(conn, cutoff)


def recent_daily_stats(conn, owner_id: str, limit: int = 30) -> List[DailyStat]:
    """Per-day counters for the latest ``limit`` studied days, newest first."""
    scope = {"owner_id": owner_id}
    words = WORDS_STUDIED.recent(conn, scope, limit)
    if not words:
        return []
    correct = CORRECT_ANSWERS.counts_between(conn, scope, min(words), max(words))
    return [
        DailyStat(date=day, words_studied=count, correct_answers=correct.get(day, 0))
        for day, count in words.items()
    ]


def total_words_studied(conn, owner_id: str) -> int:
    return WORDS_STUDIED.total(conn, {"owner_id": owner_id})
