from typing import List

from app.adapters.llm.constants import (
    FRAMING_NOT_ASSESSABLE_NOTE,
    JUDGE_PROMPT_TEMPLATE,
    JUDGMENT_SHAPE_HINT,
    TIMECODE_CHUNK_WORDS,
)
from app.domain.models import SpeechStats, Submission
from app.utils.text import format_duration, tokens

MIN_CHUNK_WORDS = 12


def timecoded_transcript(
    transcript: str, duration_seconds: float, words_per_chunk: int = TIMECODE_CHUNK_WORDS
) -> str:
    """
    Split a transcript into word chunks labelled with estimated [m:ss-m:ss]
    ranges, assuming an even speaking rate over the whole duration.
    """
    words = tokens(transcript)
    if not words:
        return ''
    dur = duration_seconds if duration_seconds and duration_seconds > 0 else 0.0
    size = max(MIN_CHUNK_WORDS, int(words_per_chunk))
    total = len(words)

    lines: List[str] = []
    for start in range(0, total, size):
        end = min(total, start + size)
        if dur:
            label = '[{}-{}]'.format(
                format_duration(start / total * dur), format_duration(end / total * dur)
            )
        else:
            label = '[?:??-?:??]'
        lines.append(f"{label} {' '.join(words[start:end])}")
    return '\n'.join(lines)


class JudgePromptBuilder:
    def __init__(self, words_per_chunk: int = TIMECODE_CHUNK_WORDS):
        self.words_per_chunk = words_per_chunk

    def build(self, submission: Submission, stats: SpeechStats) -> str:
        dur = submission.duration_seconds
        duration = f'{round(dur or 0)}s ({format_duration(dur) if dur else "Unknown"})'
        framing_note = (
            '' if submission.framing.body_language_assessable else FRAMING_NOT_ASSESSABLE_NOTE
        )
        # str.format would trip over the JSON braces in the shape hint
        replacements = {
            '{THEME}': submission.theme or '(none)',
            '{QUOTE}': submission.quote or '(none)',
            '{DURATION}': duration,
            '{WORD_COUNT}': str(stats.word_count),
            '{WPM}': str(stats.wpm),
            '{FILLER_COUNT}': str(stats.filler_word_count),
            '{FRAMING_NOTE}': framing_note,
            '{SHAPE}': JUDGMENT_SHAPE_HINT,
            '{TRANSCRIPT}': timecoded_transcript(
                submission.transcript, dur, self.words_per_chunk
            ),
        }
        prompt = JUDGE_PROMPT_TEMPLATE
        for key, value in replacements.items():
            prompt = prompt.replace(key, value)
        return prompt
