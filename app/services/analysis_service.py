# app/services/analysis_service.py
import logging
from typing import Dict, Optional

from app.domain.enums import Classification
from app.domain.errors import (
    InsufficientTranscript,
    TranscriptNonsense,
    TranscriptTooShort,
)
from app.domain.judgment import RawJudgment
from app.domain.models import (
    AnalysisResult,
    CategoryScore,
    CategoryScores,
    LengthPenalty,
    ParseMetrics,
    Rubric,
    SpeechStats,
    SubMetric,
    Submission,
    TranscriptClassification,
    TranscriptIntegrity,
)
from app.services.caps import apply_cap
from app.services.classifier import classify
from app.services.integrity import TranscriptIntegrityChecker
from app.services.judge_prompt_builder import JudgePromptBuilder
from app.services.length_policy import (
    apply_to_rubric,
    deduct,
    eye_contact_percentage,
    length_penalty,
    tournament_ready,
)
from app.services.normalizer import (
    category_scores_from,
    neutralize_body_language,
    normalize,
    normalize_scale,
)
from app.services.recovery import ModelResponseRecoverer
from app.utils.text import count_fillers, format_duration, round1
from app.utils.text import word_count as count_words

logger = logging.getLogger(__name__)

TIERS = ((9.0, 'Finals'), (8.0, 'Breaking'), (7.7, 'Competitive'))
DEFAULT_TIER = 'Developing'

INSUFFICIENT_SCORE = 1.0
INSUFFICIENT_METRICS: Dict[str, tuple] = {
    'contentAnalysis': (
        'topicAdherence',
        'argumentStructure',
        'depthOfAnalysis',
        'examplesEvidence',
        'timeManagement',
    ),
    'deliveryAnalysis': ('vocalVariety', 'pacing', 'articulation', 'fillerWords'),
    'languageAnalysis': ('vocabulary', 'rhetoricalDevices', 'emotionalAppeal', 'logicalAppeal'),
    'bodyLanguageAnalysis': ('eyeContact', 'gestures', 'posture', 'stagePresence'),
}


def performance_tier(overall_score: float) -> str:
    for floor, name in TIERS:
        if overall_score >= floor:
            return name
    return DEFAULT_TIER


def speech_stats(submission: Submission) -> SpeechStats:
    wc = submission.word_count
    if wc is None or wc < 0:
        wc = count_words(submission.transcript)
    dur = max(0.0, float(submission.duration_seconds or 0.0))
    minutes = dur / 60.0
    fillers, breakdown = count_fillers(submission.transcript)
    return SpeechStats(
        duration=format_duration(dur),
        word_count=wc,
        wpm=int(round(wc / minutes)) if minutes else 0,
        filler_word_count=fillers,
        filler_word_rate=round1(fillers / minutes) if minutes else 0.0,
        filler_breakdown=breakdown,
    )


def effective_classification(
    heuristic: Classification, model_label: Optional[Classification]
) -> Classification:
    # a lexical too_short/nonsense always wins over whatever the model says
    if heuristic in (Classification.TOO_SHORT, Classification.NONSENSE):
        return heuristic
    return model_label or heuristic


def rubric_from(raw: RawJudgment) -> Rubric:
    return {
        section: {
            name: SubMetric(score=m.score, feedback=m.feedback, extra=dict(m.model_extra or {}))
            for name, m in metrics.items()
        }
        for section, metrics in raw.sections().items()
    }


class AnalysisService:
    """
    One unit of work per submission:
    stats -> classify -> (skip | prompt + recover) -> scale fix-up ->
    normalize against framing -> length penalty -> cap -> tier -> readiness.
    """

    def __init__(
        self,
        recoverer: ModelResponseRecoverer,
        prompt_builder: Optional[JudgePromptBuilder] = None,
        *,
        skip_model_on_heuristic_fail: bool = True,
        integrity: Optional[TranscriptIntegrityChecker] = None,
    ):
        self.recoverer = recoverer
        self.prompt_builder = prompt_builder or JudgePromptBuilder()
        self.integrity = integrity or TranscriptIntegrityChecker()
        self.skip_model_on_heuristic_fail = skip_model_on_heuristic_fail

    def _screen(self, heuristic: TranscriptClassification) -> None:
        if not self.skip_model_on_heuristic_fail:
            return
        if heuristic.label == Classification.TOO_SHORT:
            raise TranscriptTooShort(heuristic.reason)
        if heuristic.label == Classification.NONSENSE:
            raise TranscriptNonsense(heuristic.reason)

    async def run(self, submission: Submission) -> AnalysisResult:
        stats = speech_stats(submission)
        integrity = self.integrity.check(submission.transcript)
        heuristic = classify(submission.transcript, submission.duration_seconds, stats.word_count)
        logger.info(
            '[analysis.classify] session=%s label=%s words=%d unique=%.2f',
            submission.session_id,
            heuristic.label.value,
            heuristic.word_count,
            heuristic.unique_ratio,
        )

        try:
            self._screen(heuristic)
        except InsufficientTranscript as e:
            logger.info(
                '[analysis.skip_model] session=%s label=%s reason=%r',
                submission.session_id,
                e.label.value,
                e.reason,
            )
            return self._insufficient_result(submission, stats, e, integrity)

        prompt = self.prompt_builder.build(submission, stats)
        recovered = await self.recoverer.invoke(prompt)
        raw = normalize_scale(recovered.judgment)

        label = effective_classification(heuristic.label, raw.classification)
        return self._assemble(
            submission,
            stats,
            label=label,
            scores=category_scores_from(raw),
            rubric=rubric_from(raw),
            parse_metrics=recovered.metrics,
            strengths=tuple(str(s) for s in raw.strengths),
            priority_improvements=tuple(raw.priority_improvements),
            practice_drill=raw.practice_drill,
            integrity=integrity,
        )

    def _assemble(
        self,
        submission: Submission,
        stats: SpeechStats,
        *,
        label: Classification,
        scores: CategoryScores,
        rubric: Rubric,
        parse_metrics: ParseMetrics,
        model_skipped: bool = False,
        strengths: tuple = (),
        priority_improvements: tuple = (),
        practice_drill: str = '',
        integrity: Optional[TranscriptIntegrity] = None,
    ) -> AnalysisResult:
        assessable = submission.framing.body_language_assessable
        normalized = normalize(scores, assessable)
        if not assessable:
            rubric = neutralize_body_language(rubric)

        if model_skipped:
            # a guarded result reports the floor, not the sum of its rounded weights
            penalty = LengthPenalty()
            overall = INSUFFICIENT_SCORE
        else:
            penalty = length_penalty(submission.duration_seconds)
            rubric = apply_to_rubric(rubric, penalty)
            overall = deduct(normalized.overall_score, penalty)
        if penalty.applies:
            logger.info(
                '[analysis.length_penalty] session=%s %.1f -> %.1f note=%r',
                submission.session_id,
                normalized.overall_score,
                overall,
                penalty.note,
            )

        capped = apply_cap(overall, label)
        if capped.cap_applied:
            logger.info(
                '[analysis.cap] session=%s label=%s %.1f -> %.1f',
                submission.session_id,
                label.value,
                overall,
                capped.overall_score,
            )

        ready = tournament_ready(
            capped.overall_score,
            normalized.categories,
            submission.duration_seconds,
            stats.filler_word_rate,
            eye_contact_percentage(rubric),
        )

        return AnalysisResult(
            classification=label,
            cap_applied=capped.cap_applied,
            body_language_assessable=assessable,
            category_scores=normalized.categories,
            overall_score=capped.overall_score,
            performance_tier=performance_tier(capped.overall_score),
            rubric=rubric,
            speech_stats=stats,
            parse_metrics=parse_metrics,
            model_skipped=model_skipped,
            strengths=strengths,
            priority_improvements=priority_improvements,
            practice_drill=practice_drill,
            tournament_ready=ready,
            length_penalty=penalty,
            transcript_integrity=integrity,
        )

    def _insufficient_result(
        self,
        submission: Submission,
        stats: SpeechStats,
        reason: InsufficientTranscript,
        integrity: Optional[TranscriptIntegrity] = None,
    ) -> AnalysisResult:
        feedback = (
            f'INSUFFICIENT SPEECH DATA: {reason.reason}. '
            'The speech cannot be scored fairly without a usable transcript of competitive length. '
            'Re-record and speak continuously for at least one minute.'
        )
        s = INSUFFICIENT_SCORE
        scores = CategoryScores(
            content=CategoryScore(score=s, weight=0.40, weighted=round1(s * 0.40)),
            delivery=CategoryScore(score=s, weight=0.30, weighted=round1(s * 0.30)),
            language=CategoryScore(score=s, weight=0.15, weighted=round1(s * 0.15)),
            body_language=CategoryScore(score=s, weight=0.15, weighted=round1(s * 0.15)),
        )
        rubric: Rubric = {
            section: {name: SubMetric(score=s, feedback=feedback) for name in names}
            for section, names in INSUFFICIENT_METRICS.items()
        }
        return self._assemble(
            submission,
            stats,
            label=reason.label,
            scores=scores,
            rubric=rubric,
            parse_metrics=ParseMetrics(),
            model_skipped=True,
            priority_improvements=(
                {
                    'priority': 1,
                    'issue': 'No scorable speech',
                    'action': 'Speak continuously for at least one minute on the quote',
                    'impact': 'Required for any meaningful judging.',
                },
            ),
            practice_drill=(
                'Record 20 seconds, replay to confirm audio, '
                'then re-record the full round with continuous speech.'
            ),
            integrity=integrity,
        )
