from datetime import date

from fastapi import APIRouter, Query

from db.database import run_in_db
from utils.daily import purge_daily_stats_older_than
from utils.quota import purge_quota_older_than

router = APIRouter()


@router.post("/purge")
async def purge_counters(before: date = Query(..., description="Delete counter rows dated before this day")):
    """Retention cleanup for daily stats and quota rows; scheduling data is untouched."""
    daily_removed = await run_in_db(purge_daily_stats_older_than, before)
    quota_removed = await run_in_db(purge_quota_older_than, before)
    return {
        "before": before.isoformat(),
        "daily_stats_removed": daily_removed,
        "quota_removed": quota_removed,
    }
