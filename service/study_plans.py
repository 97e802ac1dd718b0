import logging
from datetime import date
from typing import List, Optional, Tuple

from pydantic import ValidationError

import error
from config.setting import settings
from core.db import CreateDBSession
from model.study_plans import StudyPlan, PlanSubject, ScheduleItem
from schema.ai import AIPlanPayload
from schema.study_plans import StudyPlanRequest
from service.ai import AIService
from service.planning.allocation import (
    SubjectAllocation,
    calculate_allocation,
    finalize_allocation,
    study_hours_budget,
)
from service.planning.scheduler import build_schedule
from util.clock import count_working_days
from util.text import find_match

logger = logging.getLogger(__name__)

PLAN_PROMPT = """Crie um plano de estudos detalhado para o concurso "{exam_name}" com as seguintes especificações:

- Data da prova: {exam_date}
- Dias úteis de estudo: {work_days}
- Horas disponíveis por dia: {hours}h
- Horas de estudo efetivo (80% do total): {study_hours}h
- Nível atual: {level}
- Matérias: {subjects}
{focus}
Retorne APENAS um JSON com a seguinte estrutura:
{{
  "title": "Título do plano",
  "description": "Descrição detalhada",
  "totalHours": {study_hours},
  "subjects": [
    {{
      "name": "Nome da matéria (exatamente como informado)",
      "weight": porcentagem_do_tempo,
      "hours": horas_estimadas,
      "difficulty": "easy|medium|hard",
      "priority": número_de_1_a_5
    }}
  ]
}}

Considere o peso das matérias no edital, dificuldade progressiva e o nível do candidato.
"""


class StudyPlanService:
    @staticmethod
    def days_until_exam(exam_date: date, today: date) -> Tuple[int, int]:
        """Calendar and working days from ``today`` up to the exam (exclusive)."""
        calendar_days = (exam_date - today).days
        if calendar_days <= 0:
            raise error.InvalidInputError("A data da prova deve ser futura")
        work_days = count_working_days(today, exam_date)
        if work_days == 0:
            raise error.InvalidInputError(
                "Não há dias úteis de estudo antes da prova")
        return calendar_days, work_days

    @staticmethod
    def build_plan_prompt(request: StudyPlanRequest, work_days: int, study_hours: int) -> str:
        focus = (
            f"- Áreas de foco: {', '.join(request.focus_areas)}\n"
            if request.focus_areas else ""
        )
        return PLAN_PROMPT.format(
            exam_name=request.exam_name,
            exam_date=request.exam_date.strftime("%d/%m/%Y"),
            work_days=work_days,
            hours=request.available_hours_per_day,
            study_hours=study_hours,
            level=request.current_level.value,
            subjects=", ".join(request.subjects),
            focus=focus,
        )

    @staticmethod
    def validate_ai_allocation(
        payload: dict, request: StudyPlanRequest, study_hours: int
    ) -> Tuple[AIPlanPayload, List[SubjectAllocation]]:
        """Check the model's proposal against the request and correct its arithmetic.

        Every returned subject must match a requested one, and every
        requested subject must appear exactly once.
        """
        try:
            proposal = AIPlanPayload(**payload)
        except ValidationError as e:
            raise error.AIResponseParseError(f"AI plan failed validation: {e}")

        by_subject = {}
        for entry in proposal.subjects:
            match = find_match(entry.name, request.subjects)
            if match is None:
                raise error.AIResponseParseError(
                    f"AI returned unknown subject {entry.name!r}")
            if match in by_subject:
                raise error.AIResponseParseError(
                    f"AI returned {match!r} more than once")
            by_subject[match] = entry

        missing = [s for s in request.subjects if s not in by_subject]
        if missing:
            raise error.AIResponseParseError(
                f"AI plan is missing subjects: {', '.join(missing)}")

        ordered = [by_subject[s] for s in request.subjects]
        if sum(e.weight for e in ordered) <= 0:
            raise error.AIResponseParseError("AI plan weights sum to zero")

        allocation = finalize_allocation(
            request.subjects,
            [e.weight for e in ordered],
            study_hours,
            difficulties=[e.difficulty for e in ordered],
            priorities=[e.priority for e in ordered],
        )
        return proposal, allocation

    @staticmethod
    def ai_allocation(
        request: StudyPlanRequest, work_days: int, study_hours: int
    ) -> Optional[Tuple[AIPlanPayload, List[SubjectAllocation]]]:
        """AI-refined allocation, or ``None`` when the deterministic one must be used."""
        ai = AIService()
        if not ai.enabled:
            return None
        try:
            payload = ai.request_plan_allocation(
                StudyPlanService.build_plan_prompt(request, work_days, study_hours)
            )
            return StudyPlanService.validate_ai_allocation(payload, request, study_hours)
        except error.ExternalServiceError as e:
            logger.warning(f"AI plan allocation rejected, using fallback: {e.msg}")
            return None

    @staticmethod
    def generate_study_plan(
        user_id: str, request: StudyPlanRequest, today: Optional[date] = None
    ) -> int:
        today = today or date.today()
        _, work_days = StudyPlanService.days_until_exam(request.exam_date, today)
        study_hours = study_hours_budget(work_days, request.available_hours_per_day)

        title = f"Plano de Estudos - {request.exam_name}"
        description = (
            f"Plano personalizado com {study_hours}h de estudos distribuídas "
            f"até {request.exam_date.strftime('%d/%m/%Y')}"
        )

        refined = StudyPlanService.ai_allocation(request, work_days, study_hours)
        if refined is not None:
            proposal, allocation = refined
            title = (proposal.title or "").strip() or title
            description = (proposal.description or "").strip() or description
        else:
            allocation = calculate_allocation(
                request.subjects, study_hours,
                request.current_level, request.focus_areas,
            )

        sessions = build_schedule(
            allocation, today, request.exam_date,
            request.available_hours_per_day, settings.STUDY_DAY_START,
        )

        with CreateDBSession() as db:
            plan = StudyPlan(
                user_id=user_id,
                title=title[:255],
                description=description,
                exam_name=request.exam_name,
                exam_date=request.exam_date,
                total_study_hours=study_hours,
                daily_study_hours=request.available_hours_per_day,
                current_level=request.current_level,
                ai_generated=refined is not None,
            )
            subjects = [
                PlanSubject(
                    subject_name=a.subject_name,
                    weight_percentage=a.weight_percentage,
                    estimated_hours=a.estimated_hours,
                    completed_hours=0.0,
                    difficulty=a.difficulty,
                    priority=a.priority,
                )
                for a in allocation
            ]
            plan.subjects = subjects
            db.add(plan)
            db.flush()

            db.add_all([
                ScheduleItem(
                    plan_id=plan.id,
                    subject_id=subjects[s.subject_index].id,
                    scheduled_date=s.scheduled_date,
                    start_time=s.start_time,
                    end_time=s.end_time,
                    duration_minutes=s.duration_minutes,
                    session_type=s.session_type,
                    topic=s.topic,
                    completed=False,
                )
                for s in sessions
            ])
            db.commit()
            plan_id = plan.id

        logger.info(
            f"Generated plan {plan_id} for user {user_id}: {len(allocation)} subjects, "
            f"{len(sessions)} sessions over {work_days} working days"
        )
        return plan_id
