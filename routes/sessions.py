from fastapi import APIRouter, Query, status
from typing import List, Optional

from config import get_owner_id
from db.database import run_in_db
from models.session import Session, SessionEnd, SessionStart
from utils import clock
from utils.sessions import average_accuracy_since, end_session, get_session, recent_sessions, start_session

router = APIRouter()


@router.post("", response_model=Session, status_code=status.HTTP_201_CREATED)
async def open_session(payload: SessionStart):
    owner = payload.owner_id or get_owner_id()
    session = await run_in_db(start_session, owner, payload.session_type, clock.now_ms())
    return Session.model_validate(session)


@router.post("/{session_id}/end", response_model=Session)
async def close_session(session_id: int, payload: Optional[SessionEnd] = None):
    payload = payload or SessionEnd()
    session = await run_in_db(
        end_session,
        session_id,
        clock.now_ms(),
        payload.words_studied,
        payload.correct_answers,
    )
    return Session.model_validate(session)


@router.get("/recent", response_model=List[Session])
async def list_recent_sessions(
    limit: int = Query(default=10, ge=1, le=100),
    owner_id: Optional[str] = Query(default=None),
):
    owner = owner_id or get_owner_id()
    sessions = await run_in_db(recent_sessions, owner, limit)
    return [Session.model_validate(session) for session in sessions]


@router.get("/accuracy")
async def session_accuracy(
    days: int = Query(default=7, ge=1, le=365),
    owner_id: Optional[str] = Query(default=None),
):
    owner = owner_id or get_owner_id()
    since_ms = clock.now_ms() - days * 24 * 60 * 60 * 1000
    accuracy = await run_in_db(average_accuracy_since, owner, since_ms)
    return {"owner_id": owner, "days": days, "average_accuracy": round(accuracy, 4)}


@router.get("/{session_id}", response_model=Session)
async def read_session(session_id: int):
    session = await run_in_db(get_session, session_id)
    return Session.model_validate(session)
