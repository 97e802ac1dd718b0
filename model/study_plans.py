from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Float,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Enum,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from core.setup import Base
from util.enum import StudyLevel, Difficulty, SessionType


def _enum(enum_cls):
    """Store enum values (not member names) in a portable VARCHAR column."""
    return Enum(
        enum_cls,
        native_enum=False,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


class StudyPlan(Base):
    """A user's study schedule for one target exam."""
    __tablename__ = "study_plans"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    exam_name = Column(String(255), nullable=False)
    exam_date = Column(Date, nullable=False)
    total_study_hours = Column(Integer, nullable=False)
    daily_study_hours = Column(Float, nullable=False)
    current_level = Column(_enum(StudyLevel), nullable=False,
                           default=StudyLevel.intermediate)
    ai_generated = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    subjects = relationship(
        "PlanSubject",
        back_populates="plan",
        cascade="all, delete-orphan",
        order_by="PlanSubject.id",
    )
    schedule = relationship(
        "ScheduleItem",
        back_populates="plan",
        cascade="all, delete-orphan",
        order_by="[ScheduleItem.scheduled_date, ScheduleItem.start_time, ScheduleItem.id]",
    )
    sessions = relationship(
        "StudySession",
        back_populates="plan",
        cascade="all, delete-orphan",
    )


class PlanSubject(Base):
    """One topic area of a plan with its hour allocation and progress."""
    __tablename__ = "plan_subjects"

    id = Column(Integer, primary_key=True, index=True)
    plan_id = Column(Integer, ForeignKey("study_plans.id"), nullable=False, index=True)
    subject_name = Column(String(255), nullable=False)
    weight_percentage = Column(Integer, nullable=False)
    estimated_hours = Column(Integer, nullable=False, default=0)
    completed_hours = Column(Float, nullable=False, default=0.0)
    difficulty = Column(_enum(Difficulty), nullable=False, default=Difficulty.medium)
    priority = Column(Integer, nullable=False, default=1)

    plan = relationship("StudyPlan", back_populates="subjects")


class ScheduleItem(Base):
    """A time-boxed study session scheduled for one day."""
    __tablename__ = "study_schedule"

    id = Column(Integer, primary_key=True, index=True)
    plan_id = Column(Integer, ForeignKey("study_plans.id"), nullable=False, index=True)
    subject_id = Column(Integer, ForeignKey("plan_subjects.id"), nullable=False)
    scheduled_date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    session_type = Column(_enum(SessionType), nullable=False)
    topic = Column(String(255), nullable=False)
    completed = Column(Boolean, default=False, nullable=False)

    plan = relationship("StudyPlan", back_populates="schedule")
    subject = relationship("PlanSubject")


class StudySession(Base):
    """Append-only log of timer sessions recorded against a subject."""
    __tablename__ = "study_sessions"

    id = Column(Integer, primary_key=True, index=True)
    plan_id = Column(Integer, ForeignKey("study_plans.id"), nullable=False, index=True)
    subject_id = Column(Integer, ForeignKey("plan_subjects.id"), nullable=False)
    user_id = Column(String(64), nullable=False, index=True)
    started_at = Column(DateTime(timezone=True), nullable=False)
    ended_at = Column(DateTime(timezone=True), nullable=False)
    duration_seconds = Column(Integer, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    session_type = Column(_enum(SessionType), nullable=False, default=SessionType.study)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    plan = relationship("StudyPlan", back_populates="sessions")
    subject = relationship("PlanSubject")
