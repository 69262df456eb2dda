from fastapi import APIRouter, Query
from typing import Optional

from config import get_owner_id, load_config
from db.database import run_in_db
from models.stats import Quota
from utils import clock
from utils.quota import STORY_RESOURCE, QuotaTracker

router = APIRouter()


def _tracker(resource: str, config: dict) -> QuotaTracker:
    limits = {STORY_RESOURCE: config["quota"]["story_daily_limit"]}
    return QuotaTracker(resource, limits.get(resource.strip().lower(), 0))


@router.get("/{resource}", response_model=Quota)
async def quota_status(resource: str, owner_id: Optional[str] = Query(default=None)):
    config = load_config()
    owner = owner_id or get_owner_id(config)
    tracker = _tracker(resource, config)
    status = await run_in_db(tracker.status, owner, clock.today())
    return Quota.model_validate(status)


@router.post("/{resource}/consume")
async def quota_consume(resource: str, owner_id: Optional[str] = Query(default=None)):
    """Use one unit of today's quota; ``consumed`` is false once the limit is reached."""
    config = load_config()
    owner = owner_id or get_owner_id(config)
    tracker = _tracker(resource, config)
    today = clock.today()

    def _consume(conn):
        consumed = tracker.try_consume(conn, owner, today)
        return consumed, tracker.status(conn, owner, today)

    consumed, status = await run_in_db(_consume)
    return {"consumed": consumed, "quota": Quota.model_validate(status).model_dump()}
