from datetime import date, datetime
from typing import List, Optional

from sqlalchemy.orm import selectinload

import error
from config.setting import settings
from core.db import CreateDBSession
from model.study_plans import StudyPlan, PlanSubject, ScheduleItem, StudySession
from schema import SuccessOut
from schema.study_plans import (
    DashboardStatsOut,
    PlanSubjectOut,
    ScheduleItemOut,
    StudyPlanOut,
    StudyPlanRequest,
    StudySessionIn,
    StudySessionOut,
    TimerOut,
)
from service.redis import Redis, study_plans_key
from service.study_plans import StudyPlanService
from util.clock import elapsed_seconds, format_elapsed

MIN_SESSION_SECONDS = 60

redis_instance = Redis()


def progress_percentage(completed_hours: float, estimated_hours: int) -> float:
    """Share of the estimate already studied; may exceed 100."""
    if not estimated_hours:
        return 0.0
    return round(completed_hours / estimated_hours * 100, 2)


class StudyPlanController:
    @staticmethod
    def _map_subject(subject: PlanSubject) -> PlanSubjectOut:
        completed = round(subject.completed_hours or 0.0, 2)
        return PlanSubjectOut(
            id=subject.id,
            subject_name=subject.subject_name,
            weight_percentage=subject.weight_percentage,
            estimated_hours=subject.estimated_hours,
            completed_hours=completed,
            difficulty=subject.difficulty,
            priority=subject.priority,
            progress_percentage=progress_percentage(completed, subject.estimated_hours),
        )

    @staticmethod
    def _map_plan(plan: StudyPlan) -> StudyPlanOut:
        """Centralized mapper for plans with their subjects and schedule."""
        return StudyPlanOut(
            id=plan.id,
            user_id=plan.user_id,
            title=plan.title,
            description=plan.description,
            exam_name=plan.exam_name,
            exam_date=plan.exam_date,
            total_study_hours=plan.total_study_hours,
            daily_study_hours=plan.daily_study_hours,
            current_level=plan.current_level,
            ai_generated=bool(plan.ai_generated),
            subjects=[StudyPlanController._map_subject(s) for s in plan.subjects],
            schedule=[ScheduleItemOut.model_validate(i) for i in plan.schedule],
        )

    @staticmethod
    def _query_plans(db):
        return db.query(StudyPlan).options(
            selectinload(StudyPlan.subjects),
            selectinload(StudyPlan.schedule),
        )

    @staticmethod
    def _owned_plan(db, user_id: str, plan_id: int) -> StudyPlan:
        plan = StudyPlanController._query_plans(db).filter(
            StudyPlan.id == plan_id).first()
        if not plan:
            raise error.ResourceNotFoundError("Study plan not found")
        if plan.user_id != user_id:
            raise error.OwnershipError("Study plan belongs to another user")
        return plan

    @staticmethod
    def _invalidate(user_id: str) -> None:
        redis_instance.delete(study_plans_key(user_id))

    @staticmethod
    def generate_study_plan(
        user_id: str, request: StudyPlanRequest, today: Optional[date] = None
    ) -> StudyPlanOut:
        plan_id = StudyPlanService.generate_study_plan(user_id, request, today)
        StudyPlanController._invalidate(user_id)
        return StudyPlanController.get_study_plan(user_id, plan_id)

    @staticmethod
    def get_user_study_plans(user_id: str) -> List[StudyPlanOut]:
        """All plans of a user, newest first, with subjects and schedule."""
        cache_key = study_plans_key(user_id)
        cached = redis_instance.get_json(cache_key)
        if cached is not None:
            return [StudyPlanOut(**p) for p in cached]

        with CreateDBSession() as db:
            plans = StudyPlanController._query_plans(db).filter(
                StudyPlan.user_id == user_id
            ).order_by(StudyPlan.created_at.desc(), StudyPlan.id.desc()).all()
            result = [StudyPlanController._map_plan(p) for p in plans]

        redis_instance.set_json(
            cache_key,
            [r.model_dump(mode="json") for r in result],
            expiry=settings.CACHE_EXPIRE_SECONDS,
        )
        return result

    @staticmethod
    def get_study_plan(user_id: str, plan_id: int) -> StudyPlanOut:
        with CreateDBSession() as db:
            plan = StudyPlanController._owned_plan(db, user_id, plan_id)
            return StudyPlanController._map_plan(plan)

    @staticmethod
    def delete_study_plan(user_id: str, plan_id: int) -> SuccessOut:
        with CreateDBSession() as db:
            plan = StudyPlanController._owned_plan(db, user_id, plan_id)
            db.delete(plan)
            db.commit()

        StudyPlanController._invalidate(user_id)
        return SuccessOut(message="Study plan deleted successfully")

    @staticmethod
    def update_schedule_item(
        user_id: str, plan_id: int, item_id: int, completed: bool
    ) -> ScheduleItemOut:
        with CreateDBSession() as db:
            StudyPlanController._owned_plan(db, user_id, plan_id)
            item = db.query(ScheduleItem).filter(
                ScheduleItem.id == item_id, ScheduleItem.plan_id == plan_id
            ).first()
            if not item:
                raise error.ResourceNotFoundError("Schedule item not found")
            item.completed = completed
            db.commit()
            result = ScheduleItemOut.model_validate(item)

        StudyPlanController._invalidate(user_id)
        return result

    @staticmethod
    def record_study_session(user_id: str, data: StudySessionIn) -> StudySessionOut:
        """Log a finished timer session and add its time to the subject.

        The increment is done by the database in a single UPDATE so two
        sessions saved at once cannot overwrite each other.
        """
        if data.duration_seconds < MIN_SESSION_SECONDS:
            raise error.SessionTooShortError(
                "Sessão muito curta: o mínimo é de 1 minuto")

        hours_added = round(data.duration_seconds / 3600, 2)

        with CreateDBSession() as db:
            StudyPlanController._owned_plan(db, user_id, data.plan_id)
            subject = db.query(PlanSubject).filter(
                PlanSubject.id == data.subject_id,
                PlanSubject.plan_id == data.plan_id,
            ).first()
            if not subject:
                raise error.ResourceNotFoundError("Subject not found in this plan")

            session = StudySession(
                plan_id=data.plan_id,
                subject_id=data.subject_id,
                user_id=user_id,
                started_at=data.started_at,
                ended_at=data.ended_at,
                duration_seconds=data.duration_seconds,
                duration_minutes=data.duration_seconds // 60,
                session_type=data.session_type,
                notes=data.notes,
            )
            db.add(session)
            db.query(PlanSubject).filter(PlanSubject.id == subject.id).update(
                {PlanSubject.completed_hours: PlanSubject.completed_hours + hours_added},
                synchronize_session=False,
            )
            db.commit()
            db.refresh(subject)

            completed = round(subject.completed_hours, 2)
            result = StudySessionOut(
                id=session.id,
                plan_id=session.plan_id,
                subject_id=session.subject_id,
                started_at=session.started_at,
                ended_at=session.ended_at,
                duration_seconds=session.duration_seconds,
                duration_minutes=session.duration_minutes,
                session_type=session.session_type,
                notes=session.notes,
                hours_added=hours_added,
                completed_hours=completed,
                estimated_hours=subject.estimated_hours,
                progress_percentage=progress_percentage(completed, subject.estimated_hours),
            )

        StudyPlanController._invalidate(user_id)
        return result

    @staticmethod
    def get_dashboard_stats(user_id: str, today: Optional[date] = None) -> DashboardStatsOut:
        today = today or date.today()
        with CreateDBSession() as db:
            plans = db.query(StudyPlan).options(
                selectinload(StudyPlan.subjects)
            ).filter(StudyPlan.user_id == user_id).all()
            sessions = db.query(StudySession).filter(
                StudySession.user_id == user_id).all()
            today_items = db.query(ScheduleItem).join(StudyPlan).filter(
                StudyPlan.user_id == user_id,
                ScheduleItem.scheduled_date == today,
            ).all()

            subjects = [s for p in plans for s in p.subjects]
            estimated = sum(s.estimated_hours for s in subjects)
            completed = round(sum(s.completed_hours or 0.0 for s in subjects), 2)
            seconds_today = sum(
                s.duration_seconds for s in sessions if s.started_at.date() == today
            )

            return DashboardStatsOut(
                active_plans=sum(1 for p in plans if p.exam_date > today),
                total_plans=len(plans),
                total_estimated_hours=estimated,
                total_completed_hours=completed,
                # capped for display; per-subject progress is not
                overall_progress=min(100.0, progress_percentage(completed, estimated)),
                minutes_studied_today=seconds_today // 60,
                sessions_scheduled_today=len(today_items),
                sessions_completed_today=sum(1 for i in today_items if i.completed),
            )

    @staticmethod
    def timer(started_at: datetime, now: Optional[datetime] = None) -> TimerOut:
        seconds = elapsed_seconds(started_at, now)
        return TimerOut(
            started_at=started_at, elapsed_seconds=seconds, elapsed=format_elapsed(seconds)
        )
