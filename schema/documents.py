from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime
from util.enum import ProcessingStatus, SummaryType, Tone


class DocumentOut(BaseModel):
    id: int
    user_id: str
    title: str
    original_filename: str
    file_type: str
    file_size: int
    file_url: Optional[str] = None
    source_url: Optional[str] = None
    summary_short: Optional[str] = None
    summary_medium: Optional[str] = None
    summary_detailed: Optional[str] = None
    study_guide: Optional[str] = None
    category: Optional[str] = None
    tags: List[str] = []
    is_favorite: bool
    processing_status: ProcessingStatus
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_validator("tags", mode="before")
    @classmethod
    def default_tags(cls, value):
        return value or []


class DocumentDetailOut(DocumentOut):
    content: str


class DocumentUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    category: Optional[str] = None
    tags: Optional[List[str]] = None


class FavoriteIn(BaseModel):
    is_favorite: bool


class ProcessingOptions(BaseModel):
    tone: Tone = Tone.formal
    auto_categorize: bool = True
    summary_types: List[SummaryType] = [
        SummaryType.short, SummaryType.medium, SummaryType.detailed
    ]


class UrlDocumentIn(BaseModel):
    url: str
    tone: Optional[Tone] = None
    auto_categorize: Optional[bool] = None


class UrlContent(BaseModel):
    title: str
    content: str
    url: str
    domain: str
    word_count: int


class SummaryRequestIn(BaseModel):
    tone: Optional[Tone] = None


class PreferencesIn(BaseModel):
    default_summary_type: SummaryType = SummaryType.medium
    auto_categorize: bool = True
    preferred_tone: Tone = Tone.formal


class PreferencesOut(PreferencesIn):
    user_id: str

    class Config:
        from_attributes = True
