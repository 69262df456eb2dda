from pydantic import AliasChoices, BaseModel, Field
from typing import List, Optional

class ExampleText(BaseModel):
    source: Optional[str] = Field(default=None, validation_alias=AliasChoices("source", "en"))
    target: Optional[str] = Field(default=None, validation_alias=AliasChoices("target", "tr"))

class PackageInfo(BaseModel):
    id: str = Field(min_length=1)
    version: str = "1.0.0"
    level: Optional[str] = None
    language_pair: Optional[str] = None
    total_words: Optional[int] = None
    updated_at: Optional[str] = None
    description: Optional[str] = None
    attribution: Optional[str] = None

class WordEntry(BaseModel):
    id: int
    source: str = Field(min_length=1, validation_alias=AliasChoices("source", "english"))
    target: str = Field(min_length=1, validation_alias=AliasChoices("target", "turkish"))
    example: Optional[ExampleText] = None
    pronunciation: Optional[str] = None
    level: str
    category: str = "general"
    reversible: bool = True
    user_added: bool = Field(default=False, validation_alias=AliasChoices("user_added", "userAdded"))

class VocabularyPackage(BaseModel):
    package_info: PackageInfo
    words: List[WordEntry]
