from dataclasses import asdict, dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from app.domain.enums import Classification, FailureType, JobStatus
from app.domain.errors import InvalidJobTransition


@dataclass(frozen=True)
class FramingEvidence:
    """Client-reported camera framing. Never inferred server-side."""

    head_visible: bool = False
    torso_visible: bool = False
    hands_visible: bool = False

    @property
    def body_language_assessable(self) -> bool:
        return self.head_visible and self.torso_visible and self.hands_visible


@dataclass(frozen=True)
class Submission:
    session_id: str
    transcript: str
    duration_seconds: float
    framing: FramingEvidence = field(default_factory=FramingEvidence)
    theme: str = ''
    quote: str = ''
    word_count: Optional[int] = None


@dataclass(frozen=True)
class TranscriptClassification:
    label: Classification
    word_count: int
    unique_ratio: float
    has_connectors: bool
    triplet_repeats: int
    reason: str = ''

    @property
    def skip_model(self) -> bool:
        return self.label in (Classification.TOO_SHORT, Classification.NONSENSE)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'label': self.label.value,
            'wordCount': self.word_count,
            'uniqueRatio': round(self.unique_ratio, 3),
            'hasConnectors': self.has_connectors,
            'tripletRepeats': self.triplet_repeats,
            'reason': self.reason,
        }


@dataclass(frozen=True)
class CategoryScore:
    score: Optional[float]
    weight: float
    weighted: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CategoryScores:
    content: CategoryScore
    delivery: CategoryScore
    language: CategoryScore
    body_language: CategoryScore

    def items(self) -> Tuple[Tuple[str, CategoryScore], ...]:
        return (
            ('content', self.content),
            ('delivery', self.delivery),
            ('language', self.language),
            ('bodyLanguage', self.body_language),
        )

    @property
    def weights_total(self) -> float:
        return sum(c.weight for _, c in self.items())

    def to_dict(self) -> Dict[str, Any]:
        return {k: c.to_dict() for k, c in self.items()}


@dataclass(frozen=True)
class SubMetric:
    score: Optional[float]
    feedback: str = ''
    # model-specific detail such as wpm, percentage, examples, breakdown
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {**self.extra, 'score': self.score, 'feedback': self.feedback}


Rubric = Dict[str, Dict[str, SubMetric]]


@dataclass(frozen=True)
class SpeechStats:
    duration: str
    word_count: int
    wpm: int
    filler_word_count: int
    filler_word_rate: float
    filler_breakdown: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'duration': self.duration,
            'wordCount': self.word_count,
            'wpm': self.wpm,
            'fillerWordCount': self.filler_word_count,
            'fillerWordRate': self.filler_word_rate,
            'fillerBreakdown': dict(self.filler_breakdown),
        }


@dataclass(frozen=True)
class ParseMetrics:
    parse_fail_count: int = 0
    repair_used: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {'parseFailCount': self.parse_fail_count, 'repairUsed': self.repair_used}


@dataclass(frozen=True)
class LengthPenalty:
    """Rubric adjustment for a speech outside the 4:00-7:00 window."""

    overall_deduction: float = 0.0
    time_management_penalty: float = 0.0
    note: str = ''

    @property
    def applies(self) -> bool:
        return bool(self.note)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'overallDeduction': self.overall_deduction,
            'timeManagementPenalty': self.time_management_penalty,
            'note': self.note,
        }


@dataclass(frozen=True)
class TranscriptIntegrity:
    word_count: int
    char_length: int
    sha256: str
    suspicious: bool = False
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'wordCount': self.word_count,
            'charLen': self.char_length,
            'sha256': self.sha256,
            'isSuspicious': self.suspicious,
            'suspiciousReason': self.reason,
        }


@dataclass(frozen=True)
class AnalysisResult:
    classification: Classification
    cap_applied: bool
    body_language_assessable: bool
    category_scores: CategoryScores
    overall_score: float
    performance_tier: str
    rubric: Rubric
    speech_stats: SpeechStats
    parse_metrics: ParseMetrics = field(default_factory=ParseMetrics)
    model_skipped: bool = False
    strengths: Tuple[str, ...] = ()
    priority_improvements: Tuple[Dict[str, Any], ...] = ()
    practice_drill: str = ''
    tournament_ready: bool = False
    length_penalty: LengthPenalty = field(default_factory=LengthPenalty)
    transcript_integrity: Optional[TranscriptIntegrity] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            'classification': self.classification.value,
            'capApplied': self.cap_applied,
            'bodyLanguageAssessable': self.body_language_assessable,
            'overallScore': self.overall_score,
            'performanceTier': self.performance_tier,
            'tournamentReady': self.tournament_ready,
            'categoryScores': self.category_scores.to_dict(),
        }
        for section, metrics in self.rubric.items():
            out[section] = {name: m.to_dict() for name, m in metrics.items()}
        out.update(
            {
                'strengths': list(self.strengths),
                'priorityImprovements': [dict(p) for p in self.priority_improvements],
                'practiceDrill': self.practice_drill,
                'speechStats': self.speech_stats.to_dict(),
                'parseMetrics': self.parse_metrics.to_dict(),
                'modelSkipped': self.model_skipped,
                'lengthPenalty': self.length_penalty.to_dict(),
            }
        )
        if self.transcript_integrity is not None:
            out['transcriptIntegrity'] = self.transcript_integrity.to_dict()
        return out


@dataclass(frozen=True)
class ErrorDetails:
    type: FailureType
    message: str
    raw_model_output: Optional[str] = None
    parse_fail_count: int = 0
    repair_used: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type.value,
            'message': self.message,
            'rawModelOutput': self.raw_model_output,
            'parseFailCount': self.parse_fail_count,
            'repairUsed': self.repair_used,
        }


@dataclass(frozen=True)
class AnalysisJob:
    """
    One evaluation job. Records are immutable: every transition returns a new
    record, so a stored record is always a consistent snapshot.
      - result is set iff status == complete
      - error/error_details are set iff status == error
      - status never moves backwards
    """

    id: str
    session_id: str
    status: JobStatus
    created_at: datetime
    updated_at: datetime
    progress: int = 0
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    result: Optional[AnalysisResult] = None
    error: Optional[str] = None
    error_details: Optional[ErrorDetails] = None

    @classmethod
    def new(cls, job_id: str, session_id: str, at: datetime) -> 'AnalysisJob':
        return cls(
            id=job_id,
            session_id=session_id,
            status=JobStatus.QUEUED,
            created_at=at,
            updated_at=at,
        )

    # ---------- transitions ----------
    def _advance(self, status: JobStatus, at: datetime, **changes) -> 'AnalysisJob':
        if self.status.is_terminal or status.rank <= self.status.rank:
            raise InvalidJobTransition(
                f'job {self.id}: {self.status.value} -> {status.value} not allowed'
            )
        return replace(self, status=status, updated_at=at, **changes)

    def mark_processing(self, at: datetime, progress: int = 20) -> 'AnalysisJob':
        return self._advance(JobStatus.PROCESSING, at, started_at=at, progress=progress)

    def mark_complete(self, at: datetime, result: AnalysisResult) -> 'AnalysisJob':
        return self._advance(
            JobStatus.COMPLETE, at, completed_at=at, result=result, progress=100
        )

    def mark_error(
        self, at: datetime, error: str, details: ErrorDetails, progress: int
    ) -> 'AnalysisJob':
        return self._advance(
            JobStatus.ERROR,
            at,
            completed_at=at,
            error=error,
            error_details=details,
            progress=progress,
        )

    # ---------- reads ----------
    def elapsed_seconds(self, now: datetime) -> float:
        since = self.started_at if self.status == JobStatus.PROCESSING else self.created_at
        return max(0.0, (now - since).total_seconds())

    def with_progress(self, progress: int) -> 'AnalysisJob':
        return replace(self, progress=progress)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            'jobId': self.id,
            'sessionId': self.session_id,
            'status': self.status.value,
            'progress': self.progress,
            'createdAt': self.created_at.isoformat(),
            'updatedAt': self.updated_at.isoformat(),
        }
        if self.completed_at is not None:
            out['completedAt'] = self.completed_at.isoformat()
        if self.result is not None:
            out['result'] = self.result.to_dict()
        if self.error is not None:
            out['error'] = self.error
        if self.error_details is not None:
            out['errorDetails'] = self.error_details.to_dict()
        return out
