# app/domain/judgment.py
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.domain.enums import ALLOWED_LABELS, Classification

BODY_LANGUAGE_METRICS = ('eyeContact', 'gestures', 'posture', 'stagePresence')


class CategoryJudgment(BaseModel):
    model_config = ConfigDict(extra='ignore')

    score: float


class CategoryJudgments(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    content: CategoryJudgment
    delivery: CategoryJudgment
    language: CategoryJudgment
    body_language: CategoryJudgment = Field(alias='bodyLanguage')


class MetricJudgment(BaseModel):
    # keep model-specific keys (wpm, percentage, examples, ...)
    model_config = ConfigDict(extra='allow')

    score: Optional[float] = None
    feedback: str = ''

    @field_validator('score', mode='before')
    @classmethod
    def _lenient_score(cls, v):
        if isinstance(v, bool):
            return None
        try:
            return float(v)
        except (TypeError, ValueError):
            return None

    @field_validator('feedback', mode='before')
    @classmethod
    def _text(cls, v):
        return '' if v is None else str(v)


class RawJudgment(BaseModel):
    """
    Shape the judging model must return. Only the headline and the four
    category scores are required; rubric detail is optional.
    """

    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    overall_score: float = Field(alias='overallScore')
    classification: Optional[Classification] = None
    category_scores: CategoryJudgments = Field(alias='categoryScores')

    content_analysis: Dict[str, MetricJudgment] = Field(
        default_factory=dict, alias='contentAnalysis'
    )
    delivery_analysis: Dict[str, MetricJudgment] = Field(
        default_factory=dict, alias='deliveryAnalysis'
    )
    language_analysis: Dict[str, MetricJudgment] = Field(
        default_factory=dict, alias='languageAnalysis'
    )
    body_language_analysis: Dict[str, MetricJudgment] = Field(
        default_factory=dict, alias='bodyLanguageAnalysis'
    )

    strengths: List[str] = Field(default_factory=list)
    priority_improvements: List[Dict[str, Any]] = Field(
        default_factory=list, alias='priorityImprovements'
    )
    practice_drill: str = Field('', alias='practiceDrill')

    @field_validator('classification', mode='before')
    @classmethod
    def _drop_unknown_label(cls, v):
        # labels outside the enum are treated as "model did not classify"
        if isinstance(v, str) and v.strip().lower() in ALLOWED_LABELS:
            return v.strip().lower()
        return None

    @field_validator(
        'content_analysis',
        'delivery_analysis',
        'language_analysis',
        'body_language_analysis',
        mode='before',
    )
    @classmethod
    def _keep_metric_objects(cls, v):
        if not isinstance(v, dict):
            return {}
        return {k: m for k, m in v.items() if isinstance(m, dict)}

    def sections(self) -> Dict[str, Dict[str, MetricJudgment]]:
        return {
            'contentAnalysis': self.content_analysis,
            'deliveryAnalysis': self.delivery_analysis,
            'languageAnalysis': self.language_analysis,
            'bodyLanguageAnalysis': self.body_language_analysis,
        }
