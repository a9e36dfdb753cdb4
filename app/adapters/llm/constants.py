from enum import Enum


class Provider(str, Enum):
    OPENAI = 'openai'
    ANTHROPIC = 'anthropic'
    DUMMY = 'dummy'


class OpenAIModels(str, Enum):
    GPT_4O = 'gpt-4o'
    GPT_4O_MINI = 'gpt-4o-mini'


class AnthropicModels(str, Enum):
    CLAUDE_35 = 'claude-3-5-sonnet-latest'


TIMECODE_CHUNK_WORDS = 36

JUDGE_SYSTEM_PROMPT = """
You are a professional impromptu speech judge.
You score one speech at a time against a fixed rubric and you answer with a single JSON object.

Rules:
- Return ONLY valid JSON. No markdown, no code fences, no commentary.
- All scores are on a 0-10 scale with one decimal (e.g. 6.3, 8.7). Never use a 0-100 scale.
- Use ONLY quotes and time ranges from the transcript you are given. Do not invent content.
""".strip()

JUDGE_PROMPT_TEMPLATE = """
STEP 0: CLASSIFY THE SPEECH (MANDATORY FIRST STEP)
Before scoring, classify the speech into ONE of these categories:

- "normal": Coherent speech addressing the topic with identifiable structure
- "too_short": Speech under 60 seconds OR transcript under 100 words
- "nonsense": Word salad, random words, gibberish, incoherent rambling with no logical thread
- "off_topic": Speech is coherent but completely ignores the quote/theme
- "mostly_off_topic": Speech has minimal connection to quote/theme (>70% off-topic content)

HARD SCORE CAPS BY CLASSIFICATION:
- "too_short" / "nonsense" / "off_topic" -> overallScore MAXIMUM 2.5
- "mostly_off_topic" -> overallScore MAXIMUM 6.0
- "normal" -> no cap; score using the full rubric

SCORING BANDS:
9.0-10.0: Finals-caliber
8.0-8.9:  Breaking rounds
7.0-7.9:  Competitive
5.0-6.9:  Developing
3.0-4.9:  Significant problems
0.0-2.9:  Minimal skill demonstration

WEIGHTED FORMULA:
Overall = (Content x 0.40) + (Delivery x 0.30) + (Language x 0.15) + (Body Language x 0.15)

INPUT DATA
THEME: {THEME}
QUOTE: {QUOTE}
DURATION: {DURATION}
MEASURED STATS: {WORD_COUNT} words, {WPM} wpm, {FILLER_COUNT} filler words
{FRAMING_NOTE}
TRANSCRIPT (with estimated time-codes):
\"\"\"
{TRANSCRIPT}
\"\"\"

For each metric decide the score first from the evidence, then write feedback that justifies it.
Cite evidence as 'exact quote' [m:ss-m:ss]. Each feedback string is at most 700 characters.

Return exactly this JSON shape (placeholder values are NOT valid scores):
{SHAPE}
""".strip()

FRAMING_NOT_ASSESSABLE_NOTE = (
    'FRAMING: head, torso and hands were NOT all visible on camera. '
    'Body language cannot be assessed; still return the bodyLanguage fields, '
    'they will be discarded.\n'
)

JUDGMENT_SHAPE_HINT = """{
  "classification": <"normal"|"too_short"|"nonsense"|"off_topic"|"mostly_off_topic">,
  "overallScore": <number 0.0-10.0>,
  "categoryScores": {
    "content": {"score": <number>, "weight": 0.40, "weighted": <number>},
    "delivery": {"score": <number>, "weight": 0.30, "weighted": <number>},
    "language": {"score": <number>, "weight": 0.15, "weighted": <number>},
    "bodyLanguage": {"score": <number>, "weight": 0.15, "weighted": <number>}
  },
  "contentAnalysis": {
    "topicAdherence": {"score": <number>, "feedback": <string>},
    "argumentStructure": {"score": <number>, "feedback": <string>},
    "depthOfAnalysis": {"score": <number>, "feedback": <string>},
    "examplesEvidence": {"score": <number>, "feedback": <string>},
    "timeManagement": {"score": <number>, "feedback": <string>}
  },
  "deliveryAnalysis": {
    "vocalVariety": {"score": <number>, "feedback": <string>},
    "pacing": {"score": <number>, "wpm": <number>, "feedback": <string>},
    "articulation": {"score": <number>, "feedback": <string>},
    "fillerWords": {"score": <number>, "total": <number>, "perMinute": <number>, "feedback": <string>}
  },
  "languageAnalysis": {
    "vocabulary": {"score": <number>, "feedback": <string>},
    "rhetoricalDevices": {"score": <number>, "examples": <array of strings>, "feedback": <string>},
    "emotionalAppeal": {"score": <number>, "feedback": <string>},
    "logicalAppeal": {"score": <number>, "feedback": <string>}
  },
  "bodyLanguageAnalysis": {
    "eyeContact": {"score": <number>, "percentage": <number 0-100>, "feedback": <string>},
    "gestures": {"score": <number>, "feedback": <string>},
    "posture": {"score": <number>, "feedback": <string>},
    "stagePresence": {"score": <number>, "feedback": <string>}
  },
  "priorityImprovements": [{"priority": <number>, "issue": <string>, "action": <string>, "impact": <string>}],
  "strengths": [<string>, ...],
  "practiceDrill": <string>
}"""

REPAIR_SYSTEM_PROMPT = (
    'You are a JSON repair utility. Fix formatting ONLY. '
    'Do not change meanings, scores, quotes, or time ranges. '
    'Output MUST be a single valid JSON object and nothing else.'
)

REPAIR_USER_TEMPLATE = (
    'Target JSON shape (keys must match; no extra keys):\n{SHAPE}\n\n'
    'Invalid model output to repair:\n{RAW}'
)
