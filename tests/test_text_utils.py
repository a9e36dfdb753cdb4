import pytest

from app.utils.text import (
    count_fillers,
    format_duration,
    round1,
    strip_code_fences,
    trunc,
    word_count,
)

pytestmark = pytest.mark.unit


def test_round1_is_half_up():
    assert round1(0.25) == 0.3
    assert round1(7.271) == 7.3
    assert round1(7.24) == 7.2


def test_round1_uses_the_decimal_value_not_the_binary_float():
    # 7.0 * 0.35 is 2.4499999999999997 as a float
    assert round1(7.0 * 0.35) == 2.5
    assert round1(1.005 * 10) == 10.1
    assert round1(-0.25) == -0.3
    assert round1(float('inf')) == float('inf')


def test_word_count_splits_on_any_whitespace():
    assert word_count('  one\ttwo\n three  ') == 3
    assert word_count('') == 0


def test_count_fillers_matches_whole_words_and_phrases():
    total, breakdown = count_fillers('Um, so I, like, you know, unlike the others, um')
    assert breakdown == {'um': 2, 'so': 1, 'like': 1, 'you know': 1}
    assert total == 5


def test_format_duration():
    assert format_duration(0) == '0:00'
    assert format_duration(65) == '1:05'
    assert format_duration(272.4) == '4:32'


def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('{"a": 1}') == '{"a": 1}'


def test_trunc():
    assert trunc('abc', 5) == 'abc'
    assert trunc('abcdef', 3) == 'abc…'
