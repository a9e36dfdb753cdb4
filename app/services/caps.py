# app/services/caps.py
"""
Hard caps on the headline score by classification.

Only the overall score is capped. Category and sub-metric scores are left as
the model produced them so the rubric feedback stays informative; while a cap
is active the headline and the category numbers can legitimately disagree.
"""
from dataclasses import dataclass
from typing import Dict, Optional

from app.domain.enums import Classification

CAPS: Dict[Classification, Optional[float]] = {
    Classification.TOO_SHORT: 2.5,
    Classification.NONSENSE: 2.5,
    Classification.OFF_TOPIC: 2.5,
    Classification.MOSTLY_OFF_TOPIC: 6.0,
    Classification.NORMAL: None,
}


@dataclass(frozen=True)
class CapOutcome:
    overall_score: float
    cap_applied: bool  # True only when the cap strictly lowered the score


def apply_cap(overall_score: float, classification: Classification) -> CapOutcome:
    cap = CAPS.get(Classification(classification))
    if cap is None or overall_score <= cap:
        return CapOutcome(overall_score=overall_score, cap_applied=False)
    return CapOutcome(overall_score=cap, cap_applied=True)
