"""Weighted hour allocation across the subjects of a study plan.

Both the deterministic path and the AI-assisted path end in
:func:`finalize_allocation`, so every plan obeys the same arithmetic:
integer weights summing to 100, a minimum share per subject, and hours
summing exactly to the study budget.
"""
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import error
from util.enum import Difficulty, StudyLevel
from util.text import find_match, normalize_name

# Fraction of the available hours spent on new material; the rest is revision.
STUDY_SHARE = 0.8
MINIMUM_SHARE_PERCENT = 5.0
FOCUS_AREA_BOOST = 1.2
LEVEL_ADJUSTMENT = 0.3

# Typical weight of each subject in Brazilian public exams.
BASE_WEIGHTS: Dict[str, int] = {
    "Direito Constitucional": 20,
    "Direito Administrativo": 25,
    "Português": 15,
    "Matemática": 10,
    "Raciocínio Lógico": 10,
    "Conhecimentos Gerais": 10,
    "Informática": 10,
    "Direito Civil": 15,
    "Direito Penal": 15,
    "Direito Processual": 10,
    "Direito Tributário": 10,
    "Administração Pública": 10,
    "Legislação Específica": 15,
    "Contabilidade": 10,
    "Economia": 10,
    "Estatística": 10,
    "Atualidades": 5,
}

FOUNDATIONAL_SUBJECTS = {
    "Português",
    "Matemática",
    "Raciocínio Lógico",
    "Informática",
    "Conhecimentos Gerais",
    "Atualidades",
}

ADVANCED_SUBJECTS = {
    "Direito Constitucional",
    "Direito Administrativo",
    "Direito Civil",
    "Direito Penal",
    "Direito Processual",
    "Direito Tributário",
    "Administração Pública",
    "Legislação Específica",
    "Contabilidade",
    "Economia",
    "Estatística",
}

SUBJECT_DIFFICULTY: Dict[str, Difficulty] = {
    "Direito Constitucional": Difficulty.hard,
    "Direito Administrativo": Difficulty.hard,
    "Direito Processual": Difficulty.hard,
    "Direito Tributário": Difficulty.hard,
    "Raciocínio Lógico": Difficulty.hard,
    "Matemática": Difficulty.hard,
    "Contabilidade": Difficulty.hard,
    "Estatística": Difficulty.hard,
    "Economia": Difficulty.hard,
    "Português": Difficulty.medium,
    "Direito Civil": Difficulty.medium,
    "Direito Penal": Difficulty.medium,
    "Administração Pública": Difficulty.medium,
    "Legislação Específica": Difficulty.medium,
    "Informática": Difficulty.easy,
    "Conhecimentos Gerais": Difficulty.easy,
    "Atualidades": Difficulty.easy,
}


@dataclass
class SubjectAllocation:
    subject_name: str
    weight_percentage: int
    estimated_hours: int
    difficulty: Difficulty
    priority: int


def study_hours_budget(work_days: int, hours_per_day: float) -> int:
    """Hours of new material for a plan; 20% of the time is kept for revision."""
    total_available_hours = work_days * hours_per_day
    return math.floor(round(total_available_hours * STUDY_SHARE, 6))


def known_subject(subject: str) -> Optional[str]:
    return find_match(subject, BASE_WEIGHTS)


def subject_difficulty(subject: str) -> Difficulty:
    known = known_subject(subject)
    return SUBJECT_DIFFICULTY.get(known, Difficulty.medium)


def priority_for_weight(weight: float) -> int:
    if weight >= 20:
        return 5
    if weight >= 15:
        return 4
    if weight >= 10:
        return 3
    if weight >= 5:
        return 2
    return 1


def level_factor(subject: str, level: StudyLevel) -> float:
    known = known_subject(subject)
    if level == StudyLevel.intermediate or known is None:
        return 1.0
    direction = 1 if level == StudyLevel.beginner else -1
    if known in FOUNDATIONAL_SUBJECTS:
        return 1 + direction * LEVEL_ADJUSTMENT
    if known in ADVANCED_SUBJECTS:
        return 1 - direction * LEVEL_ADJUSTMENT
    return 1.0


def base_weights(subjects: Sequence[str]) -> List[float]:
    """Table weight for known subjects; unknown ones split what is left."""
    known = [known_subject(s) for s in subjects]
    unknown_count = sum(1 for k in known if k is None)
    remainder = 100 - sum(BASE_WEIGHTS[k] for k in known if k is not None)
    if unknown_count:
        share = remainder / unknown_count if remainder > 0 else 100 / len(subjects)
    else:
        share = 0.0
    return [float(BASE_WEIGHTS[k]) if k is not None else share for k in known]


def raw_weights(
    subjects: Sequence[str],
    level: StudyLevel = StudyLevel.intermediate,
    focus_areas: Optional[Sequence[str]] = None,
) -> List[float]:
    focus_areas = focus_areas or []
    weights = []
    for subject, weight in zip(subjects, base_weights(subjects)):
        weight *= level_factor(subject, level)
        if find_match(subject, focus_areas) is not None:
            weight *= FOCUS_AREA_BOOST
        weights.append(weight)
    return weights


def apply_minimum_share(
    weights: Sequence[float], minimum: float = MINIMUM_SHARE_PERCENT
) -> List[float]:
    """Convert weights to percentages where no subject gets less than ``minimum``.

    Subjects under the minimum are pinned to it and the others are scaled
    down proportionally. When there are too many subjects for the minimum
    to fit in 100%, the plain proportions are returned.
    """
    total = sum(weights)
    count = len(weights)
    if total <= 0:
        return [100 / count] * count
    shares = [w / total * 100 for w in weights]
    if count * minimum > 100:
        return shares

    pinned = set()
    while True:
        free = [i for i in range(count) if i not in pinned]
        budget = 100 - minimum * len(pinned)
        free_total = sum(shares[i] for i in free)
        if free_total > 0:
            scaled = {i: shares[i] / free_total * budget for i in free}
        else:
            scaled = {i: budget / len(free) for i in free}
        below = [i for i in free if scaled[i] < minimum]
        if not below:
            break
        pinned.update(below)

    return [minimum if i in pinned else scaled[i] for i in range(count)]


def normalize_weights(weights: Sequence[float]) -> List[int]:
    """Integer percentages summing to exactly 100.

    Flooring leaves a small residual which goes to the first subject.
    """
    if not weights:
        raise error.InvalidInputError("At least one subject is required")
    shares = apply_minimum_share(weights)
    percentages = [math.floor(s + 1e-9) for s in shares]
    percentages[0] += 100 - sum(percentages)
    return percentages


def distribute_hours(study_hours: int, percentages: Sequence[int]) -> List[int]:
    hours = [math.floor(study_hours * p / 100) for p in percentages]
    hours[0] += study_hours - sum(hours)
    return hours


def finalize_allocation(
    subjects: Sequence[str],
    weights: Sequence[float],
    study_hours: int,
    difficulties: Optional[Sequence[Optional[Difficulty]]] = None,
    priorities: Optional[Sequence[Optional[int]]] = None,
) -> List[SubjectAllocation]:
    """Turn raw weights into a consistent allocation.

    ``difficulties`` and ``priorities`` may hold per-subject overrides;
    ``None`` entries fall back to the subject table and the weight
    thresholds.
    """
    if not subjects:
        raise error.InvalidInputError("At least one subject is required")
    if len(weights) != len(subjects):
        raise error.InvalidInputError("Each subject needs exactly one weight")

    percentages = normalize_weights(weights)
    hours = distribute_hours(study_hours, percentages)
    difficulties = difficulties or [None] * len(subjects)
    priorities = priorities or [None] * len(subjects)

    return [
        SubjectAllocation(
            subject_name=subject,
            weight_percentage=percentage,
            estimated_hours=subject_hours,
            difficulty=difficulty or subject_difficulty(subject),
            priority=priority or priority_for_weight(percentage),
        )
        for subject, percentage, subject_hours, difficulty, priority in zip(
            subjects, percentages, hours, difficulties, priorities
        )
    ]


def calculate_allocation(
    subjects: Sequence[str],
    study_hours: int,
    level: StudyLevel = StudyLevel.intermediate,
    focus_areas: Optional[Sequence[str]] = None,
) -> List[SubjectAllocation]:
    """Deterministic allocation from the subject weight table."""
    if not subjects:
        raise error.InvalidInputError("At least one subject is required")
    return finalize_allocation(
        subjects, raw_weights(subjects, level, focus_areas), study_hours
    )
