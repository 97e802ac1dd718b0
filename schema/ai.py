from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime
from util.enum import Difficulty, SummaryType, Tone


class SummaryOptions(BaseModel):
    type: SummaryType = SummaryType.medium
    tone: Tone = Tone.formal
    language: str = "pt-BR"


class SummaryIn(BaseModel):
    content: str
    type: SummaryType = SummaryType.medium
    tone: Tone = Tone.formal


class SummaryOut(BaseModel):
    type: SummaryType
    tone: Tone
    summary: str
    generated_at: datetime


class EditalIn(BaseModel):
    content: str = Field(min_length=1)


class EditalSubject(BaseModel):
    nome: str
    peso: int = Field(default=3, ge=1, le=5)
    topicos: List[str] = []

    @field_validator("peso", mode="before")
    @classmethod
    def coerce_weight(cls, value):
        # the model often answers "4" or "4/5"
        if isinstance(value, str):
            digits = "".join(c for c in value.split("/")[0] if c.isdigit())
            value = int(digits) if digits else 3
        if isinstance(value, (int, float)):
            return min(5, max(1, int(value)))
        return 3


class EditalAnalysis(BaseModel):
    concursoNome: str = "Concurso Público"
    orgao: str = "Órgão Público"
    cargo: str = "Cargo Público"
    dataProva: str = ""
    materias: List[EditalSubject] = Field(min_length=1)
    horasEstudoSugeridas: str = "4"
    nivelDificuldade: Difficulty = Difficulty.medium
    observacoes: str = ""

    @field_validator("horasEstudoSugeridas", "dataProva", mode="before")
    @classmethod
    def stringify(cls, value):
        return "" if value is None else str(value)


class AIPlanSubject(BaseModel):
    """One subject of the allocation the model proposes for a plan."""
    name: str = Field(min_length=1)
    weight: float = Field(ge=0, allow_inf_nan=False)
    hours: Optional[float] = Field(default=None, allow_inf_nan=False)
    difficulty: Optional[Difficulty] = None
    priority: Optional[int] = Field(default=None, ge=1, le=5)


class AIPlanPayload(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    totalHours: Optional[float] = None
    subjects: List[AIPlanSubject] = Field(min_length=1)
