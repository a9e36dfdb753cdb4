# app/services/normalizer.py
import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from app.domain.judgment import BODY_LANGUAGE_METRICS, RawJudgment
from app.domain.models import CategoryScore, CategoryScores, Rubric, SubMetric
from app.utils.text import clamp, round1

logger = logging.getLogger(__name__)

BASE_WEIGHTS: Dict[str, float] = {
    'content': 0.40,
    'delivery': 0.30,
    'language': 0.15,
    'body_language': 0.15,
}

NOT_ASSESSABLE_FEEDBACK = (
    'Not assessable due to camera framing. '
    'Please record with head + hands + torso visible.'
)


@dataclass(frozen=True)
class NormalizedScores:
    categories: CategoryScores
    overall_score: float


# ----------------------------- scale fix-up -----------------------------
def _collect_scores(obj: Any, out: List[float]) -> None:
    if isinstance(obj, dict):
        for k, v in obj.items():
            if k in ('score', 'overallScore'):
                if isinstance(v, (int, float)) and not isinstance(v, bool):
                    out.append(float(v))
            else:
                _collect_scores(v, out)
    elif isinstance(obj, list):
        for v in obj:
            _collect_scores(v, out)


def _rescale_in_place(obj: Any, factor: float) -> None:
    if isinstance(obj, dict):
        for k, v in obj.items():
            if k in ('score', 'overallScore'):
                if isinstance(v, (int, float)) and not isinstance(v, bool):
                    obj[k] = clamp(round1(v * factor), 0.0, 10.0)
            else:
                _rescale_in_place(v, factor)
    elif isinstance(obj, list):
        for v in obj:
            _rescale_in_place(v, factor)


def normalize_scale(raw: RawJudgment) -> RawJudgment:
    """
    Bring a judgment answered on a 0-100 or 0-1 scale back to 0-10.
    Every score is rounded to one decimal and clamped to [0, 10].
    """
    data = raw.model_dump(by_alias=True, mode='json')
    found: List[float] = []
    _collect_scores(data, found)
    top = max(found) if found else 10.0
    if top > 10:
        factor = 0.1
    elif 0 < top <= 1.2:
        factor = 10.0
    else:
        factor = 1.0
    if factor != 1.0:
        logger.info('[normalize.scale] max_score=%s factor=%s', top, factor)
    _rescale_in_place(data, factor)

    eye = data.get('bodyLanguageAnalysis', {}).get('eyeContact')
    if isinstance(eye, dict) and isinstance(eye.get('percentage'), (int, float)):
        pct = eye['percentage']
        eye['percentage'] = int(clamp(round(pct * 100 if pct <= 1.2 else pct), 0, 100))

    return RawJudgment.model_validate(data)


# ----------------------------- weights -----------------------------
def category_scores_from(raw: RawJudgment) -> CategoryScores:
    cs = raw.category_scores

    def base(name: str, score: float) -> CategoryScore:
        w = BASE_WEIGHTS[name]
        return CategoryScore(score=score, weight=w, weighted=round1(score * w))

    return CategoryScores(
        content=base('content', cs.content.score),
        delivery=base('delivery', cs.delivery.score),
        language=base('language', cs.language.score),
        body_language=base('body_language', cs.body_language.score),
    )


def _renormalized_weights() -> Dict[str, float]:
    # 1 / (1 - 0.15): spread body language's weight over the other three
    scale = 1.0 / (1.0 - BASE_WEIGHTS['body_language'])
    return {
        name: round(BASE_WEIGHTS[name] * scale, 2)
        for name in ('content', 'delivery', 'language')
    }


def normalize(scores: CategoryScores, body_language_assessable: bool) -> NormalizedScores:
    """
    Apply rubric weights. When body language cannot be assessed its category
    is nulled (weight 0) and the other weights are renormalized to sum to 1.

    Each `weighted` value is round1(score * weight) and overall is round1 of
    their sum, so the displayed categories always add up to the overall.
    Idempotent: feeding the output back in yields the same output.
    """
    assessable = body_language_assessable and scores.body_language.score is not None

    if assessable:
        weights = dict(BASE_WEIGHTS)
    else:
        weights = {**_renormalized_weights(), 'body_language': 0.0}

    def cat(name: str, score) -> CategoryScore:
        w = weights[name]
        if score is None or w == 0.0:
            return CategoryScore(score=None, weight=0.0, weighted=None)
        s = float(score)
        return CategoryScore(score=s, weight=w, weighted=round1(s * w))

    categories = CategoryScores(
        content=cat('content', scores.content.score),
        delivery=cat('delivery', scores.delivery.score),
        language=cat('language', scores.language.score),
        body_language=cat('body_language', scores.body_language.score),
    )
    total = sum(c.weighted for _, c in categories.items() if c.weighted is not None)
    return NormalizedScores(
        categories=categories, overall_score=clamp(round1(total), 0.0, 10.0)
    )


def neutralize_body_language(rubric: Rubric) -> Rubric:
    """Null every body-language sub-metric and say why, instead of dropping the section."""
    section: Dict[str, SubMetric] = {}
    existing = rubric.get('bodyLanguageAnalysis', {})
    for name in BODY_LANGUAGE_METRICS:
        extra = dict(existing[name].extra) if name in existing else {}
        if name == 'eyeContact':
            extra['percentage'] = None
        section[name] = SubMetric(score=None, feedback=NOT_ASSESSABLE_FEEDBACK, extra=extra)
    return {**rubric, 'bodyLanguageAnalysis': section}
