from fastapi import APIRouter, Query
from typing import Dict, List, Optional

from config import get_owner_id, load_config
from db.database import run_in_db
from models.review import AnswerRequest, GradeRequest, GradeResult, Progress, QueueEntryOut
from utils import clock
from utils.daily import record_answer
from utils.directions import Direction, prompt_and_answer, require_concrete
from utils.grading import char_diff, quality_from_answer
from utils.packages import get_item
from utils.queue import (
    build_queue,
    count_mastered,
    count_new,
    count_overdue,
    count_selected,
    has_eligible_items,
)
from utils.sm2 import map_rating_to_quality

router = APIRouter()


def _grade_result(outcome, quality: int) -> GradeResult:
    return GradeResult(
        progress=Progress.model_validate(outcome.progress),
        quality=quality,
        date=outcome.date,
        words_studied_today=outcome.words_studied_today,
        daily_goal=outcome.daily_goal,
        goal_reached=outcome.goal_reached,
        session_id=outcome.session_id,
    )


@router.get("/queue", response_model=List[QueueEntryOut])
async def review_queue(
    direction: Direction = Query(default=Direction.SOURCE_TO_TARGET),
    limit: Optional[int] = Query(default=None, ge=0),
    owner_id: Optional[str] = Query(default=None),
):
    """Items due now: most overdue reviews first, then new items."""
    config = load_config()
    owner = owner_id or get_owner_id(config)
    size = config["study"]["queue_limit"] if limit is None else limit
    entries = await run_in_db(build_queue, owner, direction, clock.now_ms(), size)
    return [QueueEntryOut.model_validate(entry) for entry in entries]


@router.get("/has-items")
async def review_has_items(
    direction: Direction = Query(default=Direction.SOURCE_TO_TARGET),
    owner_id: Optional[str] = Query(default=None),
) -> Dict[str, bool]:
    owner = owner_id or get_owner_id()
    available = await run_in_db(has_eligible_items, owner, direction, clock.now_ms())
    return {"has_items": available}


@router.get("/counts")
async def review_counts(
    direction: Direction = Query(default=Direction.SOURCE_TO_TARGET),
    owner_id: Optional[str] = Query(default=None),
) -> Dict[str, int]:
    owner = owner_id or get_owner_id()
    now = clock.now_ms()

    def _counts(conn) -> Dict[str, int]:
        return {
            "overdue": count_overdue(conn, owner, direction, now),
            "new": count_new(conn, owner, direction),
            "selected": count_selected(conn, owner),
            "mastered": count_mastered(conn, owner, direction),
        }

    return await run_in_db(_counts)


@router.post("/grade", response_model=GradeResult)
async def submit_grade(payload: GradeRequest):
    """Record a graded answer: new progress, daily counter and session counts in one transaction."""
    config = load_config()
    owner = payload.owner_id or get_owner_id(config)
    quality = payload.quality if payload.rating is None else map_rating_to_quality(payload.rating)
    outcome = await run_in_db(
        lambda conn: record_answer(
            conn,
            owner_id=owner,
            item_id=payload.item_id,
            direction=payload.direction,
            quality=quality,
            now_ms=clock.now_ms(),
            session_id=payload.session_id,
            daily_goal=config["study"]["daily_goal"],
        )
    )
    return _grade_result(outcome, quality)


@router.post("/answer")
async def submit_typed_answer(payload: AnswerRequest):
    """Grade a typed translation by similarity, then record it like /grade."""
    config = load_config()
    owner = payload.owner_id or get_owner_id(config)
    direction = require_concrete(payload.direction)

    def _answer(conn):
        item = get_item(conn, payload.item_id)
        _, expected = prompt_and_answer(direction, item["source_text"], item["target_text"])
        quality = quality_from_answer(expected, payload.answer, config)
        outcome = record_answer(
            conn,
            owner_id=owner,
            item_id=payload.item_id,
            direction=direction,
            quality=quality,
            now_ms=clock.now_ms(),
            session_id=payload.session_id,
            daily_goal=config["study"]["daily_goal"],
        )
        return expected, quality, outcome

    expected, quality, outcome = await run_in_db(_answer)
    result = _grade_result(outcome, quality)
    return {
        **result.model_dump(mode="json"),
        "expected": expected,
        "answer": payload.answer,
        "diff": char_diff(expected, payload.answer),
    }
