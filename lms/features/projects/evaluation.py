"""Project evaluation aggregation.

Five sub-scores on a 1..5 scale collapse into one overall score. Out of
range input is clamped, never rejected.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping

MIN_SCORE = 1
MAX_SCORE = 5

CRITERIA = ("technical", "quality", "timeline", "communication", "innovation")


def clamp(value: float) -> float:
    return min(MAX_SCORE, max(MIN_SCORE, value))


@dataclass(frozen=True)
class EvaluationScores:
    technical: float
    quality: float
    timeline: float
    communication: float
    innovation: float

    @classmethod
    def from_mapping(cls, scores: Mapping[str, float]) -> "EvaluationScores":
        return cls(**{name: clamp(scores[name]) for name in CRITERIA})

    def clamped(self) -> "EvaluationScores":
        return EvaluationScores(*(clamp(getattr(self, name)) for name in CRITERIA))

    def values(self) -> tuple[float, ...]:
        return tuple(getattr(self, name) for name in CRITERIA)


def aggregate(scores: EvaluationScores | Mapping[str, float]) -> float:
    """Mean of the clamped sub-scores, rounded half-up to 2 places."""
    if not isinstance(scores, EvaluationScores):
        scores = EvaluationScores.from_mapping(scores)
    values = scores.clamped().values()
    mean = Decimal(str(sum(values))) / Decimal(len(values))
    return float(mean.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def to_columns(scores: EvaluationScores) -> dict[str, int]:
    """Integer column values for a ``project_evaluations`` row."""
    s = scores.clamped()
    return {f"{name}_score": int(round(getattr(s, name))) for name in CRITERIA}
