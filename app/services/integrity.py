# app/services/integrity.py
import hashlib
import logging
from collections import Counter
from typing import List

from app.domain.models import TranscriptIntegrity
from app.utils.text import word_count

logger = logging.getLogger(__name__)

REPEAT_THRESHOLD = 3
MIN_PLAUSIBLE_WORDS = 25
MIN_PLAUSIBLE_CHARS = 50


class TranscriptIntegrityChecker:
    """
    Fingerprints each transcript and flags ones that look replayed or
    truncated. Repeat counts live in this process only and reset on restart.
    """

    def __init__(self, repeat_threshold: int = REPEAT_THRESHOLD):
        self.repeat_threshold = repeat_threshold
        self._seen: Counter = Counter()

    def check(self, transcript: str) -> TranscriptIntegrity:
        text = (transcript or '').strip()
        words = word_count(text)
        digest = hashlib.sha256(text.encode('utf-8')).hexdigest()
        self._seen[digest] += 1
        repeats = self._seen[digest]

        reasons: List[str] = []
        if repeats >= self.repeat_threshold:
            reasons.append(f'Transcript hash repeated {repeats} times across sessions')
        if 0 < words < MIN_PLAUSIBLE_WORDS:
            reasons.append(f'Word count suspiciously low ({words})')
        if 0 < len(text) < MIN_PLAUSIBLE_CHARS:
            reasons.append(f'Character count suspiciously low ({len(text)})')

        integrity = TranscriptIntegrity(
            word_count=words,
            char_length=len(text),
            sha256=digest,
            suspicious=bool(reasons),
            reason='; '.join(reasons) or None,
        )
        if integrity.suspicious:
            logger.warning(
                '[analysis.integrity] sha256=%s... reason=%s', digest[:16], integrity.reason
            )
        return integrity
