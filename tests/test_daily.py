import asyncio
import sqlite3
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timedelta

import pytest

from db import database
from utils import daily
from utils.daily import (
    WORDS_STUDIED,
    DailyStat,
    goal_percentage,
    is_goal_reached,
    purge_daily_stats_older_than,
    recent_daily_stats,
    record_answer,
    streak_length,
    today_stats,
    total_words_studied,
    words_studied_on,
)
from utils.directions import Direction
from utils.errors import InvalidInputError, NotFoundError, StorageError
from utils.progress import get_progress
from utils.sessions import SessionType, start_session
from utils.sm2 import DAY_MS

S2T = Direction.SOURCE_TO_TARGET
T2S = Direction.TARGET_TO_SOURCE
OWNER = "tester"
TODAY = date(2025, 11, 10)
NOW_MS = int(datetime(2025, 11, 10, 12, 0).timestamp() * 1000)


def _answer(conn, item_id, quality=4, **kwargs):
    return record_answer(conn, owner_id=OWNER, item_id=item_id, direction=S2T, quality=quality, now_ms=NOW_MS, **kwargs)


def test_record_answer_writes_progress_and_counters(conn, seed_words):
    ids = seed_words(2)

    outcome = _answer(conn, ids[0], quality=5, daily_goal=20)
    _answer(conn, ids[1], quality=1)

    stored = get_progress(conn, OWNER, ids[0], S2T)
    assert stored == outcome.progress
    assert stored.due_at == NOW_MS + DAY_MS
    assert outcome.date == TODAY.isoformat()
    assert outcome.words_studied_today == 1
    assert outcome.goal_reached is False
    assert words_studied_on(conn, OWNER, TODAY) == 2
    assert daily.CORRECT_ANSWERS.get_count(conn, {"owner_id": OWNER}, TODAY) == 1


def test_unknown_item_changes_nothing(conn, seed_words):
    seed_words(1)

    with pytest.raises(NotFoundError):
        _answer(conn, 424242)

    assert words_studied_on(conn, OWNER, TODAY) == 0
    assert get_progress(conn, OWNER, 424242, S2T) is None


def test_invalid_quality_changes_nothing(conn, seed_words):
    ids = seed_words(1)

    with pytest.raises(InvalidInputError):
        _answer(conn, ids[0], quality=6)

    assert get_progress(conn, OWNER, ids[0], S2T) is None
    assert words_studied_on(conn, OWNER, TODAY) == 0


def test_one_way_item_rejects_reverse_grade(conn, seed_words):
    ids = seed_words(1, reversible=False)

    with pytest.raises(InvalidInputError):
        record_answer(conn, owner_id=OWNER, item_id=ids[0], direction=T2S, quality=4, now_ms=NOW_MS)

    assert words_studied_on(conn, OWNER, TODAY) == 0


def test_failed_counter_write_rolls_back_progress(conn, seed_words, monkeypatch):
    ids = seed_words(1)

    def _broken_increment(*args, **kwargs):
        raise sqlite3.OperationalError("disk I/O error")

    monkeypatch.setattr(daily.WORDS_STUDIED, "increment", _broken_increment)

    with pytest.raises(StorageError):
        _answer(conn, ids[0])

    assert get_progress(conn, OWNER, ids[0], S2T) is None
    assert not conn.in_transaction


def test_goal_flips_on_the_twentieth_answer(conn, seed_words):
    ids = seed_words(20)

    outcomes = [_answer(conn, item_id, daily_goal=20) for item_id in ids[:19]]
    assert outcomes[-1].words_studied_today == 19
    assert not outcomes[-1].goal_reached
    assert not is_goal_reached(conn, OWNER, 20, TODAY)

    last = _answer(conn, ids[19], daily_goal=20)

    assert last.words_studied_today == 20
    assert last.goal_reached
    assert is_goal_reached(conn, OWNER, 20, TODAY)


def test_concurrent_answers_from_threads_all_count(conn, seed_words):
    ids = seed_words(12)

    def _grade(item_id):
        with database.get_conn() as thread_conn:
            return _answer(thread_conn, item_id)

    with ThreadPoolExecutor(max_workers=6) as pool:
        outcomes = list(pool.map(_grade, ids))

    assert sorted(outcome.words_studied_today for outcome in outcomes) == list(range(1, 13))
    assert words_studied_on(conn, OWNER, TODAY) == 12


def test_concurrent_answers_through_run_in_db_all_count(conn, seed_words):
    ids = seed_words(8)

    async def _grade_all():
        return await asyncio.gather(
            *(
                database.run_in_db(
                    record_answer,
                    owner_id=OWNER,
                    item_id=item_id,
                    direction=S2T,
                    quality=3,
                    now_ms=NOW_MS,
                )
                for item_id in ids
            )
        )

    outcomes = asyncio.run(_grade_all())

    assert len(outcomes) == 8
    assert words_studied_on(conn, OWNER, TODAY) == 8
    assert all(get_progress(conn, OWNER, item_id, S2T).repetitions == 1 for item_id in ids)


def test_today_stats(conn, seed_words):
    ids = seed_words(5)
    start_session(conn, OWNER, SessionType.REVIEW, NOW_MS)
    for item_id in ids:
        _answer(conn, item_id, quality=2 if item_id == ids[0] else 4)

    stats = today_stats(conn, OWNER, 20, TODAY)

    assert stats.date == "2025-11-10"
    assert stats.words_studied == 5
    assert stats.correct_answers == 4
    assert stats.percentage == 25
    assert stats.sessions == 1
    assert not stats.goal_reached


def test_goal_percentage_edges():
    assert goal_percentage(0, 20) == 0
    assert goal_percentage(30, 20) == 100
    assert goal_percentage(3, 0) == 100


def _study_on(conn, day, words=1):
    WORDS_STUDIED.increment(conn, {"owner_id": OWNER}, day, words)


def test_streak_counts_consecutive_days(conn):
    for back in (2, 1, 0):
        _study_on(conn, TODAY - timedelta(days=back))

    assert streak_length(conn, OWNER, TODAY) == 3


def test_streak_survives_an_empty_today(conn):
    _study_on(conn, TODAY - timedelta(days=1))
    _study_on(conn, TODAY - timedelta(days=2))

    assert streak_length(conn, OWNER, TODAY) == 2


def test_streak_breaks_on_a_gap(conn):
    for back in (0, 1, 3, 4):
        _study_on(conn, TODAY - timedelta(days=back))

    assert streak_length(conn, OWNER, TODAY) == 2
    assert streak_length(conn, "someone-else", TODAY) == 0


def test_streak_lookback_is_bounded(conn):
    for back in range(10):
        _study_on(conn, TODAY - timedelta(days=back))

    assert streak_length(conn, OWNER, TODAY, max_lookback_days=3) == 3
    assert streak_length(conn, OWNER, TODAY, max_lookback_days=0) == 0


def test_purge_drops_only_older_days(conn):
    for back in range(5):
        _study_on(conn, TODAY - timedelta(days=back), words=back + 1)

    removed = purge_daily_stats_older_than(conn, TODAY - timedelta(days=2))

    assert removed == 2
    assert words_studied_on(conn, OWNER, TODAY - timedelta(days=2)) == 3
    assert words_studied_on(conn, OWNER, TODAY - timedelta(days=3)) == 0


def test_streak_never_exceeds_the_lookback(conn):
    for back in range(400):
        _study_on(conn, TODAY - timedelta(days=back))

    assert streak_length(conn, OWNER, TODAY, max_lookback_days=365) == 365
    assert streak_length(conn, OWNER, TODAY, max_lookback_days=1) == 1


def test_recent_daily_stats_and_total(conn, seed_words):
    ids = seed_words(2)
    _study_on(conn, TODAY - timedelta(days=5), words=4)
    _study_on(conn, TODAY - timedelta(days=1), words=6)
    _answer(conn, ids[0], quality=5)
    _answer(conn, ids[1], quality=1)

    history = recent_daily_stats(conn, OWNER, limit=2)

    assert history == [
        DailyStat(date="2025-11-10", words_studied=2, correct_answers=1),
        DailyStat(date="2025-11-09", words_studied=6, correct_answers=0),
    ]
    assert len(recent_daily_stats(conn, OWNER)) == 3
    assert recent_daily_stats(conn, "someone-else") == []
    assert total_words_studied(conn, OWNER) == 12
    assert total_words_studied(conn, "someone-else") == 0
