# app/services/length_policy.py
import logging
from typing import Optional

from app.domain.models import CategoryScores, LengthPenalty, Rubric, SubMetric
from app.services.normalizer import BASE_WEIGHTS
from app.utils.text import clamp, round1

logger = logging.getLogger(__name__)

# competitive window is 4:00-7:00
SHORT_LIMIT_SECONDS = 180
OPTIMAL_MIN_SECONDS = 240
OPTIMAL_MAX_SECONDS = 420

SHORT_CONTENT_PENALTY = 2.0
BELOW_OPTIMAL_CONTENT_PENALTY = 1.0
OVERTIME_PENALTY = 0.5

SHORT_NOTE = 'INSUFFICIENT LENGTH (<3:00): Content score penalty applied.'
BELOW_OPTIMAL_NOTE = 'Below optimal range (3:00-3:59): Content score penalty applied.'
OVERTIME_NOTE = 'EXCEEDS LIMIT (>7:00): Time Management penalty applied.'

READY_MIN_OVERALL = 7.5
READY_MIN_CATEGORY = 7.0
READY_MAX_FILLERS_PER_MINUTE = 8.0
READY_MIN_EYE_CONTACT_PCT = 50


def length_penalty(duration_seconds: Optional[float]) -> LengthPenalty:
    """
    Short speeches lose content credit, taken off the overall only, so the
    category scores stay the model's own numbers. An overtime speech loses
    half a point of timeManagement instead. Unknown duration is never penalized.
    """
    try:
        dur = float(duration_seconds)
    except (TypeError, ValueError):
        return LengthPenalty()
    if dur != dur or dur <= 0:
        return LengthPenalty()

    if dur < SHORT_LIMIT_SECONDS:
        content_penalty, note = SHORT_CONTENT_PENALTY, SHORT_NOTE
    elif dur < OPTIMAL_MIN_SECONDS:
        content_penalty, note = BELOW_OPTIMAL_CONTENT_PENALTY, BELOW_OPTIMAL_NOTE
    elif dur > OPTIMAL_MAX_SECONDS:
        return LengthPenalty(time_management_penalty=OVERTIME_PENALTY, note=OVERTIME_NOTE)
    else:
        return LengthPenalty()

    return LengthPenalty(
        overall_deduction=round1(content_penalty * BASE_WEIGHTS['content']), note=note
    )


def deduct(overall_score: float, penalty: LengthPenalty) -> float:
    if not penalty.overall_deduction:
        return overall_score
    return clamp(round1(overall_score - penalty.overall_deduction), 0.0, 10.0)


def apply_to_rubric(rubric: Rubric, penalty: LengthPenalty) -> Rubric:
    """Lower timeManagement for overtime and tell the speaker why in its feedback."""
    tm = rubric.get('contentAnalysis', {}).get('timeManagement')
    if tm is None or not penalty.applies:
        return rubric

    score = tm.score
    if penalty.time_management_penalty and score is not None:
        score = clamp(round1(score - penalty.time_management_penalty), 0.0, 10.0)
    feedback = tm.feedback
    if penalty.note not in feedback:
        feedback = f'{feedback}\n\n{penalty.note}'.strip()

    section = {
        **rubric['contentAnalysis'],
        'timeManagement': SubMetric(score=score, feedback=feedback, extra=dict(tm.extra)),
    }
    return {**rubric, 'contentAnalysis': section}


def eye_contact_percentage(rubric: Rubric) -> Optional[float]:
    eye = rubric.get('bodyLanguageAnalysis', {}).get('eyeContact')
    if eye is None:
        return None
    pct = eye.extra.get('percentage')
    if isinstance(pct, (int, float)) and not isinstance(pct, bool):
        return float(pct)
    return None


def tournament_ready(
    overall_score: float,
    categories: CategoryScores,
    duration_seconds: Optional[float],
    fillers_per_minute: float,
    eye_contact_pct: Optional[float] = None,
) -> bool:
    """
    Ready for competition only if every gate passes:
    overall >= 7.5, every category >= 7.0 (an unscored category counts as 0),
    4:00-7:00 long, fewer than 8 fillers a minute, and eye contact over 50%
    when a percentage was reported.
    """
    lowest = min((c.score if c.score is not None else 0.0) for _, c in categories.items())
    try:
        dur = float(duration_seconds or 0.0)
    except (TypeError, ValueError):
        dur = 0.0

    gates = {
        'overall': overall_score >= READY_MIN_OVERALL,
        'categories': lowest >= READY_MIN_CATEGORY,
        'duration': OPTIMAL_MIN_SECONDS <= dur <= OPTIMAL_MAX_SECONDS,
        'fillers': fillers_per_minute < READY_MAX_FILLERS_PER_MINUTE,
        'eye_contact': eye_contact_pct is None or eye_contact_pct > READY_MIN_EYE_CONTACT_PCT,
    }
    failed = [name for name, ok in gates.items() if not ok]
    if failed:
        logger.debug('[analysis.tournament_ready] failed=%s', ','.join(failed))
    return not failed
