from pydantic import BaseModel, Field
from typing import Optional

from utils.sessions import SessionType

class SessionStart(BaseModel):
    session_type: SessionType = SessionType.REVIEW
    owner_id: Optional[str] = None

class SessionEnd(BaseModel):
    words_studied: Optional[int] = Field(default=None, ge=0)
    correct_answers: Optional[int] = Field(default=None, ge=0)

class Session(BaseModel):
    id: int
    owner_id: str
    session_type: SessionType
    started_at: int
    ended_at: Optional[int] = None
    words_studied: int
    correct_answers: int
    total_duration_ms: int
    is_open: bool

    class Config:
        from_attributes = True
