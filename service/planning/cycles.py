"""Split the working days before an exam into study and review phases."""
import math
from dataclasses import dataclass
from typing import List

import error
from util.enum import SessionType, StudyPhase

MIN_REVIEW_DAYS = 7
REVIEW_SHARE = 0.2
INITIAL_SHARE = 0.6
DEEP_SHARE = 0.3

PHASE_SESSION_TYPES = {
    StudyPhase.initial_study: SessionType.study,
    StudyPhase.deep_study: SessionType.practice,
    StudyPhase.intensive_review: SessionType.review,
    StudyPhase.final_review: SessionType.review,
}


@dataclass(frozen=True)
class Cycle:
    """Half-open interval ``[start, end)`` of working-day offsets."""

    phase: StudyPhase
    start: int
    end: int

    @property
    def session_type(self) -> SessionType:
        return PHASE_SESSION_TYPES[self.phase]

    @property
    def length(self) -> int:
        return self.end - self.start

    def contains(self, day_offset: int) -> bool:
        return self.start <= day_offset < self.end


def review_period(total_work_days: int) -> int:
    review = max(MIN_REVIEW_DAYS, math.floor(total_work_days * REVIEW_SHARE))
    # short horizons: the review floor can't exceed the days available
    return min(review, total_work_days)


def build_cycles(total_work_days: int) -> List[Cycle]:
    if total_work_days < 0:
        raise error.InvalidInputError("Working days cannot be negative")

    study_period = total_work_days - review_period(total_work_days)
    initial_end = math.floor(study_period * INITIAL_SHARE)
    deep_end = initial_end + math.floor(study_period * DEEP_SHARE)

    return [
        Cycle(StudyPhase.initial_study, 0, initial_end),
        Cycle(StudyPhase.deep_study, initial_end, deep_end),
        Cycle(StudyPhase.intensive_review, deep_end, study_period),
        Cycle(StudyPhase.final_review, study_period, total_work_days),
    ]


def cycle_for_day(cycles: List[Cycle], day_offset: int) -> Cycle:
    """First cycle holding ``day_offset``; the first cycle when none does."""
    return next((c for c in cycles if c.contains(day_offset)), cycles[0])
