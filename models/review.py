from pydantic import BaseModel, model_validator
from typing import Optional

from utils.directions import Direction

class GradeRequest(BaseModel):
    item_id: int
    direction: Direction
    quality: Optional[int] = None
    rating: Optional[str] = None
    session_id: Optional[int] = None
    owner_id: Optional[str] = None

    @model_validator(mode="after")
    def check_quality_or_rating(self):
        if (self.quality is None) == (self.rating is None):
            raise ValueError("Provide exactly one of 'quality' (0-5) or 'rating' (hard, medium, easy)")
        return self

class AnswerRequest(BaseModel):
    item_id: int
    direction: Direction
    answer: str
    session_id: Optional[int] = None
    owner_id: Optional[str] = None

class Progress(BaseModel):
    item_id: int
    direction: Direction
    repetitions: int
    ease_factor: float
    interval_days: int
    due_at: int
    last_reviewed_at: Optional[int] = None

    class Config:
        from_attributes = True

class GradeResult(BaseModel):
    progress: Progress
    quality: int
    date: str
    words_studied_today: int
    daily_goal: Optional[int] = None
    goal_reached: bool
    session_id: Optional[int] = None

class QueueEntryOut(BaseModel):
    item_id: int
    direction: Direction
    prompt: str
    answer: str
    source_text: str
    target_text: str
    example_source: Optional[str] = None
    example_target: Optional[str] = None
    pronunciation: Optional[str] = None
    level: str
    category: str
    package_id: str
    is_new: bool
    progress: Optional[Progress] = None

    class Config:
        from_attributes = True
