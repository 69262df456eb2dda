from fastapi import APIRouter, Query
from typing import Optional

from config import get_owner_id, load_config
from db.database import run_in_db
from models.stats import DailyStat, History, Streak, TodayStats
from utils import clock
from utils.daily import recent_daily_stats, streak_length, today_stats, total_words_studied

router = APIRouter()


@router.get("/today", response_model=TodayStats)
async def stats_today(
    daily_goal: Optional[int] = Query(default=None, ge=0),
    owner_id: Optional[str] = Query(default=None),
):
    """Today's counter against the daily goal, plus the number of sessions started today."""
    config = load_config()
    owner = owner_id or get_owner_id(config)
    goal = config["study"]["daily_goal"] if daily_goal is None else daily_goal
    stats = await run_in_db(today_stats, owner, goal, clock.today())
    return TodayStats.model_validate(stats)


@router.get("/streak", response_model=Streak)
async def stats_streak(owner_id: Optional[str] = Query(default=None)):
    config = load_config()
    owner = owner_id or get_owner_id(config)
    today = clock.today()
    days = await run_in_db(streak_length, owner, today, config["study"]["streak_lookback_days"])
    return Streak(owner_id=owner, date=today.isoformat(), streak_days=days)


@router.get("/history", response_model=History)
async def stats_history(
    limit: int = Query(default=30, ge=1, le=366),
    owner_id: Optional[str] = Query(default=None),
):
    """Recent studied days, newest first, with the lifetime word count."""
    owner = owner_id or get_owner_id()

    def _history(conn):
        return recent_daily_stats(conn, owner, limit), total_words_studied(conn, owner)

    days, total = await run_in_db(_history)
    return History(
        owner_id=owner,
        total_words_studied=total,
        days=[DailyStat.model_validate(day) for day in days],
    )
