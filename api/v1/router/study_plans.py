from datetime import datetime
from fastapi import APIRouter, Depends
from controller.study_plans import StudyPlanController
from schema.study_plans import (
    DashboardStatsOut, ScheduleItemOut, ScheduleItemUpdate, StudyPlanOut,
    StudyPlanRequest, StudySessionIn, StudySessionOut, TimerOut
)
from schema import SuccessOut
from service.auth import current_user_id

router = APIRouter(tags=["Study Plans"])


@router.post("/study-plans/generate", response_model=StudyPlanOut, status_code=201)
def generate_study_plan(
    data: StudyPlanRequest,
    user_id: str = Depends(current_user_id)
):
    """
    Build a study plan for an exam: subject weights, hours and a daily schedule
    up to the day before the exam.
    """
    return StudyPlanController.generate_study_plan(user_id, data)


@router.get("/study-plans", response_model=list[StudyPlanOut])
def get_study_plans(user_id: str = Depends(current_user_id)):
    return StudyPlanController.get_user_study_plans(user_id)


@router.get("/study-plans/stats", response_model=DashboardStatsOut)
def get_dashboard_stats(user_id: str = Depends(current_user_id)):
    return StudyPlanController.get_dashboard_stats(user_id)


@router.get("/study-plans/{plan_id}", response_model=StudyPlanOut)
def get_study_plan(plan_id: int, user_id: str = Depends(current_user_id)):
    return StudyPlanController.get_study_plan(user_id, plan_id)


@router.delete("/study-plans/{plan_id}", response_model=SuccessOut)
def delete_study_plan(plan_id: int, user_id: str = Depends(current_user_id)):
    return StudyPlanController.delete_study_plan(user_id, plan_id)


@router.patch("/study-plans/{plan_id}/schedule/{item_id}", response_model=ScheduleItemOut)
def update_schedule_item(
    plan_id: int,
    item_id: int,
    data: ScheduleItemUpdate,
    user_id: str = Depends(current_user_id)
):
    return StudyPlanController.update_schedule_item(user_id, plan_id, item_id, data.completed)


@router.post("/study-sessions", response_model=StudySessionOut, status_code=201)
def record_study_session(
    data: StudySessionIn,
    user_id: str = Depends(current_user_id)
):
    """
    Save a finished timer session and add its hours to the subject's progress.
    Sessions shorter than one minute are rejected.
    """
    return StudyPlanController.record_study_session(user_id, data)


@router.get("/study-sessions/timer", response_model=TimerOut)
def get_timer(started_at: datetime, user_id: str = Depends(current_user_id)):
    return StudyPlanController.timer(started_at)
