import json
from typing import Optional

from app.domain.ports.llm import JudgeLLMPort

_CANNED = {
    'classification': 'normal',
    'overallScore': 7.2,
    'categoryScores': {
        'content': {'score': 7.5, 'weight': 0.40, 'weighted': 3.0},
        'delivery': {'score': 7.0, 'weight': 0.30, 'weighted': 2.1},
        'language': {'score': 7.0, 'weight': 0.15, 'weighted': 1.1},
        'bodyLanguage': {'score': 7.0, 'weight': 0.15, 'weighted': 1.1},
    },
    'contentAnalysis': {
        'topicAdherence': {'score': 7.5, 'feedback': 'Stays on the quote throughout.'},
        'argumentStructure': {'score': 7.0, 'feedback': 'Clear intro, two points, short close.'},
    },
    'deliveryAnalysis': {
        'pacing': {'score': 7.0, 'wpm': 140, 'feedback': 'Comfortable pace.'},
    },
    'languageAnalysis': {
        'vocabulary': {'score': 7.0, 'feedback': 'Precise word choice.'},
    },
    'bodyLanguageAnalysis': {
        'eyeContact': {'score': 7.0, 'percentage': 60, 'feedback': 'Mostly on camera.'},
        'gestures': {'score': 7.0, 'feedback': 'Natural.'},
        'posture': {'score': 7.0, 'feedback': 'Upright.'},
        'stagePresence': {'score': 7.0, 'feedback': 'Confident.'},
    },
    'strengths': ['Clear structure'],
    'priorityImprovements': [
        {'priority': 1, 'issue': 'Thin evidence', 'action': 'Add one example per point', 'impact': 'Content'}
    ],
    'practiceDrill': 'Two-minute drill: one claim, one example, one impact.',
}


class DummyLLMAdapter(JudgeLLMPort):
    """Offline judge: always returns the same valid judgment. Only used with LLM_PROVIDER=dummy."""

    def __init__(self, output: Optional[str] = None):
        self.output = output if output is not None else json.dumps(_CANNED)

    async def complete(
        self,
        prompt: str,
        *,
        system: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        return self.output
