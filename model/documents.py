from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Boolean,
    DateTime,
    JSON,
)
from sqlalchemy.sql import func
from core.setup import Base
from model.study_plans import _enum
from util.enum import ProcessingStatus, SummaryType, Tone


class Document(Base):
    """Uploaded file or scraped page with its AI summaries."""
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    original_filename = Column(String(255), nullable=False)
    file_type = Column(String(128), nullable=False)
    file_size = Column(Integer, nullable=False, default=0)
    file_url = Column(String(512), nullable=True)
    source_url = Column(String(2048), nullable=True)
    content = Column(Text, nullable=False)
    summary_short = Column(Text, nullable=True)
    summary_medium = Column(Text, nullable=True)
    summary_detailed = Column(Text, nullable=True)
    study_guide = Column(Text, nullable=True)
    category = Column(String(128), nullable=True, index=True)
    tags = Column(JSON, nullable=True)
    is_favorite = Column(Boolean, default=False, nullable=False)
    processing_status = Column(
        _enum(ProcessingStatus), nullable=False, default=ProcessingStatus.pending
    )
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    SUMMARY_COLUMNS = {
        SummaryType.short: "summary_short",
        SummaryType.medium: "summary_medium",
        SummaryType.detailed: "summary_detailed",
        SummaryType.study_guide: "study_guide",
    }

    def __repr__(self):
        return f"<Document {self.id} {self.title}>"

    def set_summary(self, summary_type: SummaryType, text: str) -> None:
        setattr(self, self.SUMMARY_COLUMNS[summary_type], text)


class UserPreference(Base):
    """Default processing options for a user's uploads."""
    __tablename__ = "user_preferences"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, unique=True, index=True)
    default_summary_type = Column(
        _enum(SummaryType), nullable=False, default=SummaryType.medium
    )
    auto_categorize = Column(Boolean, nullable=False, default=True)
    preferred_tone = Column(_enum(Tone), nullable=False, default=Tone.formal)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
