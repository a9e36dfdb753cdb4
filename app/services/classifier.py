# app/services/classifier.py
"""
Lexical pre-screen run before any model call.

Only assigns normal / too_short / nonsense. Deciding whether a speech is off
topic needs language understanding, so off_topic and mostly_off_topic are
left to the judging model's own classification field.
"""
import re

from app.domain.enums import Classification
from app.domain.models import TranscriptClassification
from app.utils.text import tokens

MIN_DURATION_SECONDS = 60
MIN_WORDS = 100
MIN_UNIQUE_RATIO = 0.15
MIN_TRIPLET_REPEATS = 3

CONNECTORS = (
    'because',
    'therefore',
    'however',
    'although',
    'furthermore',
    'consequently',
    'moreover',
    'thus',
    'hence',
    'since',
    'as a result',
    'in conclusion',
    'first',
    'second',
    'third',
    'finally',
)

CONNECTOR_RX = re.compile(
    r'\b(' + '|'.join(re.escape(c).replace(r'\ ', r'\s+') for c in CONNECTORS) + r')\b',
    flags=re.IGNORECASE,
)
# same token three times in a row: "blah blah blah"
TRIPLET_RX = re.compile(r'\b(\w+)\s+\1\s+\1\b', flags=re.IGNORECASE)


def classify(
    transcript: str, duration_seconds: float, word_count: int
) -> TranscriptClassification:
    text = transcript or ''
    words = [w.lower() for w in tokens(text)]
    n = len(words)
    unique_ratio = (len(set(words)) / n) if n else 0.0
    has_connectors = bool(CONNECTOR_RX.search(text))
    triplet_repeats = len(TRIPLET_RX.findall(text))

    def verdict(label: Classification, reason: str) -> TranscriptClassification:
        return TranscriptClassification(
            label=label,
            word_count=word_count,
            unique_ratio=unique_ratio,
            has_connectors=has_connectors,
            triplet_repeats=triplet_repeats,
            reason=reason,
        )

    try:
        duration = float(duration_seconds)
    except (TypeError, ValueError):
        duration = 0.0
    if duration != duration:  # NaN
        duration = 0.0
    try:
        word_count = int(word_count)
    except (TypeError, ValueError, OverflowError):
        word_count = n

    # too_short dominates: a short word salad is reported as too_short
    if duration < MIN_DURATION_SECONDS or word_count < MIN_WORDS:
        return verdict(
            Classification.TOO_SHORT,
            f'Speech too short to score ({duration:.0f}s, {word_count} words)',
        )

    if unique_ratio < MIN_UNIQUE_RATIO and n > MIN_WORDS:
        return verdict(
            Classification.NONSENSE,
            f'Very low lexical diversity ({unique_ratio:.0%} unique words)',
        )

    if triplet_repeats >= MIN_TRIPLET_REPEATS and not has_connectors:
        return verdict(
            Classification.NONSENSE,
            f'Mechanical repetition ({triplet_repeats} repeated triplets) with no connectors',
        )

    return verdict(Classification.NORMAL, 'Transcript passes heuristic checks')
