import enum


class StudyLevel(str, enum.Enum):
    """Self-declared preparation level of the candidate."""

    beginner = "beginner"
    intermediate = "intermediate"
    advanced = "advanced"


class Difficulty(str, enum.Enum):
    easy = "easy"
    medium = "medium"
    hard = "hard"


class SessionType(str, enum.Enum):
    study = "study"
    review = "review"
    practice = "practice"
    # never emitted by the scheduler, kept for manual entries
    break_ = "break"


class StudyPhase(str, enum.Enum):
    """Named sub-intervals of a plan's timeline."""

    initial_study = "initial_study"
    deep_study = "deep_study"
    intensive_review = "intensive_review"
    final_review = "final_review"


class SummaryType(str, enum.Enum):
    short = "short"
    medium = "medium"
    detailed = "detailed"
    study_guide = "study_guide"


class Tone(str, enum.Enum):
    formal = "formal"
    casual = "casual"
    simple = "simple"


class ProcessingStatus(str, enum.Enum):
    pending = "pending"
    processing = "processing"
    completed = "completed"
    error = "error"
