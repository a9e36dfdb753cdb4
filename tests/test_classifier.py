import pytest

from app.domain.enums import Classification
from app.services.classifier import MIN_WORDS, classify
from conftest import NORMAL_SPEECH

pytestmark = pytest.mark.unit


def test_five_words_ten_seconds_is_too_short_regardless_of_content():
    out = classify('blah blah blah blah blah', 10, 5)
    assert out.label == Classification.TOO_SHORT
    assert out.skip_model is True


def test_short_duration_alone_is_too_short():
    out = classify(NORMAL_SPEECH, 45, 190)
    assert out.label == Classification.TOO_SHORT


def test_low_word_count_alone_is_too_short():
    out = classify(NORMAL_SPEECH, 120, MIN_WORDS - 1)
    assert out.label == Classification.TOO_SHORT


def test_coherent_speech_is_normal():
    out = classify(NORMAL_SPEECH, 90, len(NORMAL_SPEECH.split()))
    assert out.label == Classification.NORMAL
    assert out.has_connectors is True
    assert out.skip_model is False


def test_low_lexical_diversity_is_nonsense():
    text = ' '.join(['apple banana cherry'] * 60)
    out = classify(text, 120, 180)
    assert out.label == Classification.NONSENSE
    assert out.unique_ratio < 0.15


def test_triplet_repetition_without_connectors_is_nonsense():
    filler = ' '.join(f'word{i}' for i in range(120))
    text = f'{filler} go go go stop stop stop yes yes yes'
    out = classify(text, 90, 129)
    assert out.triplet_repeats >= 3
    assert out.has_connectors is False
    assert out.label == Classification.NONSENSE


def test_triplet_repetition_with_connectors_is_normal():
    filler = ' '.join(f'word{i}' for i in range(120))
    text = f'{filler} go go go stop stop stop yes yes yes because it matters'
    out = classify(text, 90, 132)
    assert out.label == Classification.NORMAL


def test_too_short_dominates_nonsense():
    out = classify('la la la la la la la la la', 5, 9)
    assert out.label == Classification.TOO_SHORT


@pytest.mark.parametrize('duration', [None, 'abc', float('nan')])
def test_classify_is_total_on_bad_duration(duration):
    out = classify(NORMAL_SPEECH, duration, 190)
    assert out.label == Classification.TOO_SHORT


def test_classify_empty_transcript():
    out = classify('', 0, 0)
    assert out.label == Classification.TOO_SHORT
    assert out.unique_ratio == 0.0
    assert out.to_dict()['label'] == 'too_short'


@pytest.mark.parametrize('reported', [float('inf'), float('-inf'), float('nan'), 'many'])
def test_classify_falls_back_to_counted_words_on_unusable_word_count(reported):
    out = classify(NORMAL_SPEECH, 120, reported)
    assert out.label == Classification.NORMAL
    assert out.word_count == len(NORMAL_SPEECH.split())
