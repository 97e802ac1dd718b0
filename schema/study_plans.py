from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Optional
from datetime import date, datetime, timedelta
from util.enum import StudyLevel, Difficulty, SessionType

# tolerated disagreement between duration_seconds and the timestamps
MAX_DURATION_DRIFT_SECONDS = 1


class StudyPlanRequest(BaseModel):
    exam_name: str = Field(min_length=1, max_length=255)
    exam_date: date
    available_hours_per_day: float = Field(gt=0, le=24)
    subjects: List[str] = Field(min_length=1)
    current_level: StudyLevel = StudyLevel.intermediate
    focus_areas: Optional[List[str]] = None

    @field_validator("exam_name")
    @classmethod
    def strip_exam_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("exam name is required")
        return value

    @field_validator("subjects")
    @classmethod
    def unique_subjects(cls, value: List[str]) -> List[str]:
        seen, subjects = set(), []
        for subject in value:
            name = subject.strip()
            if not name:
                raise ValueError("subject names cannot be blank")
            if name.lower() not in seen:
                seen.add(name.lower())
                subjects.append(name)
        return subjects


class PlanSubjectOut(BaseModel):
    id: int
    subject_name: str
    weight_percentage: int
    estimated_hours: int
    completed_hours: float
    difficulty: Difficulty
    priority: int
    progress_percentage: float

    class Config:
        from_attributes = True


class ScheduleItemOut(BaseModel):
    id: int
    subject_id: int
    scheduled_date: date
    start_time: str
    end_time: str
    duration_minutes: int
    session_type: SessionType
    topic: str
    completed: bool

    class Config:
        from_attributes = True


class StudyPlanOut(BaseModel):
    id: int
    user_id: str
    title: str
    description: Optional[str] = None
    exam_name: str
    exam_date: date
    total_study_hours: int
    daily_study_hours: float
    current_level: StudyLevel
    ai_generated: bool
    subjects: List[PlanSubjectOut]
    schedule: List[ScheduleItemOut]

    class Config:
        from_attributes = True


class ScheduleItemUpdate(BaseModel):
    completed: bool


class StudySessionIn(BaseModel):
    """A finished timer session.

    Either ``ended_at`` or ``duration_seconds`` must be sent; the missing
    one is derived from ``started_at``. When both are sent they must
    describe the same interval.
    """
    plan_id: int
    subject_id: int
    started_at: datetime
    ended_at: Optional[datetime] = None
    duration_seconds: Optional[int] = Field(default=None, ge=0)
    session_type: SessionType = SessionType.study
    notes: Optional[str] = None

    @model_validator(mode="after")
    def resolve_duration(self) -> "StudySessionIn":
        if self.ended_at is None and self.duration_seconds is None:
            raise ValueError("ended_at or duration_seconds is required")
        if self.ended_at is None:
            self.ended_at = self.started_at + timedelta(seconds=self.duration_seconds)
            return self

        if self.ended_at < self.started_at:
            raise ValueError("ended_at must not be before started_at")
        elapsed = (self.ended_at - self.started_at).total_seconds()
        if self.duration_seconds is None:
            self.duration_seconds = int(elapsed)
        elif abs(elapsed - self.duration_seconds) > MAX_DURATION_DRIFT_SECONDS:
            raise ValueError("duration_seconds does not match started_at and ended_at")
        return self


class StudySessionOut(BaseModel):
    id: int
    plan_id: int
    subject_id: int
    started_at: datetime
    ended_at: datetime
    duration_seconds: int
    duration_minutes: int
    session_type: SessionType
    notes: Optional[str] = None
    hours_added: float
    completed_hours: float
    estimated_hours: int
    progress_percentage: float


class TimerOut(BaseModel):
    started_at: datetime
    elapsed_seconds: int
    elapsed: str


class DashboardStatsOut(BaseModel):
    active_plans: int
    total_plans: int
    total_estimated_hours: int
    total_completed_hours: float
    overall_progress: float
    minutes_studied_today: int
    sessions_scheduled_today: int
    sessions_completed_today: int
