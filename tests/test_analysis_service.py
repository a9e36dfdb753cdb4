from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from app.domain.enums import Classification
from app.domain.errors import ModelParseFailure
from app.domain.judgment import RawJudgment
from app.domain.models import FramingEvidence, ParseMetrics, Submission
from app.services.analysis_service import (
    AnalysisService,
    effective_classification,
    performance_tier,
    speech_stats,
)
from app.services.integrity import TranscriptIntegrityChecker
from app.services.judge_prompt_builder import JudgePromptBuilder, timecoded_transcript
from app.services.length_policy import (
    BELOW_OPTIMAL_NOTE,
    OVERTIME_NOTE,
    SHORT_NOTE,
    length_penalty,
    tournament_ready,
)
from app.services.normalizer import category_scores_from, normalize
from app.services.recovery import Recovered
from conftest import NORMAL_SPEECH, judgment

pytestmark = pytest.mark.unit

ALL_VISIBLE = FramingEvidence(True, True, True)


def _recoverer(data):
    return SimpleNamespace(
        invoke=AsyncMock(
            return_value=Recovered(
                judgment=RawJudgment.model_validate(data),
                metrics=ParseMetrics(parse_fail_count=1, repair_used=True),
            )
        )
    )


def _sub(**kw):
    base = dict(
        session_id='s',
        transcript=NORMAL_SPEECH,
        duration_seconds=300,
        framing=ALL_VISIBLE,
        theme='Courage',
        quote='Courage is not the absence of fear.',
    )
    base.update(kw)
    return Submission(**base)


@pytest.mark.parametrize(
    'score,tier',
    [(9.0, 'Finals'), (8.2, 'Breaking'), (7.7, 'Competitive'), (7.6, 'Developing'), (1.0, 'Developing')],
)
def test_performance_tier(score, tier):
    assert performance_tier(score) == tier


def test_effective_classification_heuristic_failure_wins():
    assert effective_classification(Classification.NONSENSE, Classification.NORMAL) == Classification.NONSENSE
    assert effective_classification(Classification.NORMAL, Classification.OFF_TOPIC) == Classification.OFF_TOPIC
    assert effective_classification(Classification.NORMAL, None) == Classification.NORMAL


def test_speech_stats_counts_words_wpm_and_fillers():
    stats = speech_stats(_sub(transcript='um so I think um this works', duration_seconds=30))
    assert stats.word_count == 7
    assert stats.wpm == 14
    assert stats.filler_word_count == 3
    assert stats.filler_word_rate == 6.0
    assert stats.duration == '0:30'


def test_speech_stats_prefers_client_word_count():
    assert speech_stats(_sub(word_count=250)).word_count == 250


@pytest.mark.asyncio
async def test_run_builds_result_with_parse_metrics_and_rubric():
    recoverer = _recoverer(judgment())
    svc = AnalysisService(recoverer)

    result = await svc.run(_sub())

    assert result.overall_score == 7.2
    assert result.performance_tier == 'Developing'
    assert result.parse_metrics == ParseMetrics(parse_fail_count=1, repair_used=True)
    assert result.rubric['bodyLanguageAnalysis']['eyeContact'].extra['percentage'] == 55
    prompt = recoverer.invoke.await_args.args[0]
    assert 'Courage is not the absence of fear.' in prompt

    body = result.to_dict()
    assert body['bodyLanguageAnalysis']['eyeContact']['score'] == 6.8
    assert body['parseMetrics'] == {'parseFailCount': 1, 'repairUsed': True}


@pytest.mark.asyncio
async def test_run_nonsense_skips_model_with_guarded_result():
    recoverer = _recoverer(judgment())
    svc = AnalysisService(recoverer)
    salad = ' '.join(['apple banana cherry'] * 60)

    result = await svc.run(_sub(transcript=salad))

    assert result.classification == Classification.NONSENSE
    assert result.model_skipped is True
    assert result.overall_score == 1.0
    assert 'INSUFFICIENT SPEECH DATA' in result.rubric['contentAnalysis']['topicAdherence'].feedback
    recoverer.invoke.assert_not_awaited()


@pytest.mark.asyncio
async def test_run_without_skip_still_caps_heuristic_failure():
    recoverer = _recoverer(judgment(content=9, delivery=9, language=9, body=9, overall=9))
    svc = AnalysisService(recoverer, skip_model_on_heuristic_fail=False)

    result = await svc.run(_sub(duration_seconds=20))

    recoverer.invoke.assert_awaited_once()
    assert result.classification == Classification.TOO_SHORT
    assert result.cap_applied is True
    assert result.overall_score == 2.5
    assert result.category_scores.content.score == 9.0


@pytest.mark.asyncio
async def test_run_mostly_off_topic_caps_at_six():
    recoverer = _recoverer(
        judgment(content=8, delivery=8, language=8, body=8, classification='mostly_off_topic')
    )
    result = await AnalysisService(recoverer).run(_sub())

    assert result.overall_score == 6.0
    assert result.cap_applied is True


@pytest.mark.asyncio
async def test_run_propagates_judgment_failure():
    recoverer = SimpleNamespace(invoke=AsyncMock(side_effect=ModelParseFailure('bad', raw_output='x')))

    with pytest.raises(ModelParseFailure):
        await AnalysisService(recoverer).run(_sub())


def test_timecoded_transcript_labels_chunks():
    words = ' '.join(f'w{i}' for i in range(72))
    lines = timecoded_transcript(words, 72, words_per_chunk=36).splitlines()
    assert lines[0].startswith('[0:00-0:36] w0 ')
    assert lines[1].startswith('[0:36-1:12] w36 ')


def test_timecoded_transcript_unknown_duration():
    assert timecoded_transcript('a b c', 0).startswith('[?:??-?:??]')


def test_prompt_mentions_framing_only_when_not_assessable():
    stats = speech_stats(_sub())
    builder = JudgePromptBuilder()
    visible = builder.build(_sub(), stats)
    hidden = builder.build(_sub(framing=FramingEvidence()), stats)

    assert 'FRAMING:' not in visible
    assert 'FRAMING:' in hidden
    assert '"categoryScores"' in visible
    assert '{TRANSCRIPT}' not in visible


def _with_time_management(score=7.0, **kw):
    return judgment(
        contentAnalysis={'timeManagement': {'score': score, 'feedback': 'Used the time well.'}},
        **kw,
    )


@pytest.mark.parametrize(
    'duration, deduction, tm_penalty, note',
    [
        (150, 0.8, 0.0, SHORT_NOTE),
        (200, 0.4, 0.0, BELOW_OPTIMAL_NOTE),
        (240, 0.0, 0.0, ''),
        (420, 0.0, 0.0, ''),
        (450, 0.0, 0.5, OVERTIME_NOTE),
        (0, 0.0, 0.0, ''),
        (None, 0.0, 0.0, ''),
    ],
)
def test_length_penalty_bands(duration, deduction, tm_penalty, note):
    penalty = length_penalty(duration)
    assert penalty.overall_deduction == deduction
    assert penalty.time_management_penalty == tm_penalty
    assert penalty.note == note


@pytest.mark.asyncio
async def test_short_speech_loses_overall_but_keeps_category_scores():
    recoverer = _recoverer(_with_time_management())
    result = await AnalysisService(recoverer).run(_sub(duration_seconds=150))

    # 7.2 from the weights, minus 2.0 content penalty at 40%
    assert result.overall_score == 6.4
    assert result.category_scores.content.score == 7.5
    assert result.length_penalty.overall_deduction == 0.8
    tm = result.rubric['contentAnalysis']['timeManagement']
    assert tm.score == 7.0
    assert tm.feedback.endswith(SHORT_NOTE)
    assert result.to_dict()['lengthPenalty']['note'] == SHORT_NOTE


@pytest.mark.asyncio
async def test_overtime_speech_loses_time_management_only():
    recoverer = _recoverer(_with_time_management(score=6.2))
    result = await AnalysisService(recoverer).run(_sub(duration_seconds=480))

    assert result.overall_score == 7.2
    tm = result.rubric['contentAnalysis']['timeManagement']
    assert tm.score == 5.7
    assert OVERTIME_NOTE in tm.feedback
    assert tm.feedback.startswith('Used the time well.')


@pytest.mark.asyncio
async def test_length_deduction_happens_before_the_cap():
    recoverer = _recoverer(
        judgment(content=8, delivery=8, language=8, body=8, classification='mostly_off_topic')
    )
    result = await AnalysisService(recoverer).run(_sub(duration_seconds=150))

    # 8.0 - 0.8 = 7.2, then capped to 6.0
    assert result.overall_score == 6.0
    assert result.cap_applied is True
    assert result.performance_tier == 'Developing'


@pytest.mark.asyncio
async def test_guarded_result_gets_no_length_penalty():
    recoverer = _recoverer(judgment())
    result = await AnalysisService(recoverer).run(_sub(duration_seconds=20))

    assert result.model_skipped is True
    assert result.overall_score == 1.0
    assert result.length_penalty.applies is False


@pytest.mark.asyncio
async def test_strong_speech_in_window_is_tournament_ready():
    recoverer = _recoverer(judgment(content=8, delivery=8, language=8, body=8, overall=8))
    result = await AnalysisService(recoverer).run(_sub())

    assert result.overall_score == 8.0
    assert result.tournament_ready is True
    assert result.to_dict()['tournamentReady'] is True


@pytest.mark.asyncio
async def test_hidden_body_language_blocks_tournament_ready():
    recoverer = _recoverer(judgment(content=8, delivery=8, language=8, body=8, overall=8))
    result = await AnalysisService(recoverer).run(_sub(framing=FramingEvidence()))

    assert result.overall_score == 8.0
    assert result.tournament_ready is False


@pytest.mark.asyncio
async def test_capped_speech_is_never_tournament_ready():
    recoverer = _recoverer(
        judgment(content=9, delivery=9, language=9, body=9, classification='off_topic')
    )
    result = await AnalysisService(recoverer).run(_sub())

    assert result.overall_score == 2.5
    assert result.tournament_ready is False


@pytest.mark.parametrize(
    'overrides',
    [
        {'overall_score': 7.4},
        {'duration_seconds': 230},
        {'duration_seconds': 421},
        {'fillers_per_minute': 8.0},
        {'eye_contact_pct': 50},
    ],
)
def test_tournament_ready_gates(overrides):
    scores = normalize(
        category_scores_from(RawJudgment.model_validate(judgment(8, 8, 8, 8))), True
    ).categories
    args = dict(
        overall_score=8.0,
        categories=scores,
        duration_seconds=300,
        fillers_per_minute=2.0,
        eye_contact_pct=60,
    )
    assert tournament_ready(**args) is True
    args.update(overrides)
    assert tournament_ready(**args) is False


def test_tournament_ready_ignores_missing_eye_contact_percentage():
    scores = normalize(
        category_scores_from(RawJudgment.model_validate(judgment(8, 8, 8, 8))), True
    ).categories
    assert tournament_ready(8.0, scores, 300, 2.0, None) is True


@pytest.mark.asyncio
async def test_integrity_fingerprint_is_attached_to_every_result():
    svc = AnalysisService(_recoverer(judgment()))
    result = await svc.run(_sub(transcript=f'  {NORMAL_SPEECH}\n'))

    integrity = result.transcript_integrity
    assert integrity.word_count == len(NORMAL_SPEECH.split())
    assert integrity.char_length == len(NORMAL_SPEECH)
    assert len(integrity.sha256) == 64
    assert integrity.suspicious is False
    assert result.to_dict()['transcriptIntegrity']['isSuspicious'] is False

    guarded = await svc.run(_sub(transcript='too short to judge', duration_seconds=10))
    assert guarded.model_skipped is True
    assert guarded.transcript_integrity.suspicious is True


def test_integrity_flags_short_transcripts():
    out = TranscriptIntegrityChecker().check('hello there judges')
    assert out.suspicious is True
    assert out.reason == 'Word count suspiciously low (3); Character count suspiciously low (18)'


def test_integrity_flags_replayed_transcript_on_third_sighting():
    checker = TranscriptIntegrityChecker()
    first = checker.check(NORMAL_SPEECH)
    second = checker.check(NORMAL_SPEECH + '   ')
    third = checker.check(NORMAL_SPEECH)

    assert first.sha256 == second.sha256 == third.sha256
    assert not first.suspicious and not second.suspicious
    assert third.suspicious is True
    assert third.reason == 'Transcript hash repeated 3 times across sessions'
    assert checker.check('').suspicious is False
