from fastapi import APIRouter, Query
from typing import Optional

from config import get_owner_id, load_config
from db.database import run_in_db
from models.review import QueueEntryOut
from utils import clock
from utils.queue import pick_notification_item

router = APIRouter()


@router.get("/word")
async def notification_word(owner_id: Optional[str] = Query(default=None)):
    """Word for a reminder: one of the most overdue, else any selected word, else nothing."""
    config = load_config()
    owner = owner_id or get_owner_id(config)
    entry = await run_in_db(
        pick_notification_item,
        owner,
        clock.now_ms(),
        config["study"]["notification_top_k"],
    )
    if entry is None:
        return {"word": None}
    return {"word": QueueEntryOut.model_validate(entry).model_dump(mode="json")}
