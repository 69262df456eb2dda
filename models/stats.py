from pydantic import BaseModel
from typing import List

class TodayStats(BaseModel):
    date: str
    words_studied: int
    correct_answers: int
    daily_goal: int
    percentage: int
    sessions: int
    goal_reached: bool

    class Config:
        from_attributes = True

class Streak(BaseModel):
    owner_id: str
    date: str
    streak_days: int

class Quota(BaseModel):
    resource: str
    date: str
    count: int
    limit: int
    remaining: int
    exhausted: bool

    class Config:
        from_attributes = True

class DailyStat(BaseModel):
    date: str
    words_studied: int
    correct_answers: int

    class Config:
        from_attributes = True

class History(BaseModel):
    owner_id: str
    total_words_studied: int
    days: List[DailyStat]
