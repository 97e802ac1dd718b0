"""Day-by-day session scheduling for a study plan."""
import math
from dataclasses import dataclass
from datetime import date
from typing import List, Sequence

from service.planning.allocation import SubjectAllocation
from service.planning.cycles import Cycle, build_cycles, cycle_for_day
from util.clock import MINUTES_PER_DAY, add_minutes, parse_time, working_days
from util.enum import Difficulty, SessionType, StudyPhase

MIN_SESSION_MINUTES = 25
MAX_SESSION_MINUTES = 90
LONG_SESSION_MINUTES = 60
SHORT_BREAK_MINUTES = 5
LONG_BREAK_MINUTES = 15

DIFFICULTY_MULTIPLIERS = {
    Difficulty.hard: 1.3,
    Difficulty.medium: 1.0,
    Difficulty.easy: 0.8,
}

PHASE_MULTIPLIERS = {
    StudyPhase.initial_study: 1.2,
    StudyPhase.final_review: 0.7,
}

DIFFICULTY_RANK = {
    Difficulty.hard: 3,
    Difficulty.medium: 2,
    Difficulty.easy: 1,
}

TOPIC_TEMPLATES = {
    StudyPhase.initial_study: "Fundamentos de {subject}",
    StudyPhase.deep_study: "Exercícios práticos de {subject}",
    StudyPhase.intensive_review: "Revisão intensiva de {subject}",
    StudyPhase.final_review: "Revisão final de {subject}",
}


@dataclass
class ScheduledSession:
    """A session before persistence; ``subject_index`` points into the allocation."""

    subject_index: int
    subject_name: str
    scheduled_date: date
    start_time: str
    end_time: str
    duration_minutes: int
    session_type: SessionType
    topic: str


def break_after(session_minutes: int) -> int:
    if session_minutes >= LONG_SESSION_MINUTES:
        return LONG_BREAK_MINUTES
    return SHORT_BREAK_MINUTES


def order_subjects(
    subjects: Sequence[SubjectAllocation], phase: StudyPhase, day_offset: int
) -> List[int]:
    """Indices of ``subjects`` in the order they are studied on a day."""
    indices = range(len(subjects))
    if phase == StudyPhase.initial_study:
        return sorted(indices, key=lambda i: -subjects[i].priority)
    if phase == StudyPhase.deep_study:
        # alternate hardest-first and easiest-first days
        direction = -1 if day_offset % 2 == 0 else 1
        return sorted(
            indices, key=lambda i: direction * DIFFICULTY_RANK[subjects[i].difficulty]
        )
    return sorted(indices, key=lambda i: -subjects[i].weight_percentage)


def schedule_day(
    day: date,
    day_offset: int,
    cycle: Cycle,
    subjects: Sequence[SubjectAllocation],
    daily_minutes: int,
    day_start: str = "09:00",
) -> List[ScheduledSession]:
    """Slice one day's available minutes into sessions, one per subject at most.

    Subjects whose share falls under the minimum session length are
    skipped, so a very short day may produce no sessions at all. The
    day ends at 23:59; minutes past that are dropped.
    """
    sessions = []
    remaining = min(daily_minutes, MINUTES_PER_DAY - 1 - parse_time(day_start))
    clock = day_start
    order = order_subjects(subjects, cycle.phase, day_offset)
    phase_multiplier = PHASE_MULTIPLIERS.get(cycle.phase, 1.0)

    for position, index in enumerate(order):
        if remaining <= 0:
            break
        subject = subjects[index]
        subjects_left = len(order) - position
        target = (
            math.floor(remaining / subjects_left)
            * DIFFICULTY_MULTIPLIERS[subject.difficulty]
            * phase_multiplier
        )
        minutes = math.floor(min(target, MAX_SESSION_MINUTES, remaining))
        if minutes < MIN_SESSION_MINUTES:
            continue

        end = add_minutes(clock, minutes)
        sessions.append(
            ScheduledSession(
                subject_index=index,
                subject_name=subject.subject_name,
                scheduled_date=day,
                start_time=clock,
                end_time=end,
                duration_minutes=minutes,
                session_type=cycle.session_type,
                topic=TOPIC_TEMPLATES[cycle.phase].format(subject=subject.subject_name),
            )
        )
        pause = break_after(minutes)
        clock = add_minutes(end, pause)
        remaining -= minutes + pause

    return sessions


def build_schedule(
    subjects: Sequence[SubjectAllocation],
    start_date: date,
    exam_date: date,
    hours_per_day: float,
    day_start: str = "09:00",
) -> List[ScheduledSession]:
    """Schedule every working day in ``[start_date, exam_date)``."""
    days = list(working_days(start_date, exam_date))
    cycles = build_cycles(len(days))
    daily_minutes = int(round(hours_per_day * 60))

    schedule = []
    for offset, day in enumerate(days):
        cycle = cycle_for_day(cycles, offset)
        schedule.extend(
            schedule_day(day, offset, cycle, subjects, daily_minutes, day_start)
        )
    return schedule
