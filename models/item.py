from pydantic import BaseModel, Field
from typing import Optional

from utils.directions import Direction

class Item(BaseModel):
    id: int
    source_text: str
    target_text: str
    example_source: Optional[str] = None
    example_target: Optional[str] = None
    pronunciation: Optional[str] = None
    level: str
    category: str
    reversible: bool = True
    user_added: bool = False
    package_id: str
    position: int

    class Config:
        from_attributes = True

class SelectionUpdate(BaseModel):
    item_id: int
    direction: Direction = Direction.MIXED
    status: str = "selected"
    owner_id: Optional[str] = None

class UserItemCreate(BaseModel):
    source: str = Field(min_length=1)
    target: str = Field(min_length=1)
    example_source: Optional[str] = None
    example_target: Optional[str] = None
    direction: Direction = Direction.MIXED
    owner_id: Optional[str] = None
