# tests/conftest.py
import json
import os
from typing import List, Optional

import pytest
from dotenv import load_dotenv
from fastapi.testclient import TestClient

# Load env first (OPENAI_API_KEY, DATABASE_URL, ...)
load_dotenv()

# IMPORTANT: set flags BEFORE importing app.settings so nothing tries to open a DB pool
os.environ.setdefault('USE_INMEMORY_REPO', '1')
os.environ.setdefault('DISABLE_DB_POOL', '1')

from app.domain.errors import ModelProviderFailure  # noqa: E402
from app.domain.ports.llm import JudgeLLMPort  # noqa: E402

NORMAL_SPEECH = (
    'Today I want to talk about the quote that courage is not the absence of fear. '
    'First, I believe courage begins when we admit that we are afraid, because only then '
    'can we choose to act anyway. Consider a student who stands up in class to ask a question '
    'everyone else is too nervous to ask. She is scared, however she speaks, and therefore '
    'the whole room learns something new. Second, fear is useful information. It tells us what '
    'matters to us and where our values are being tested. Although many people treat fear as a '
    'weakness, history shows that leaders like firefighters and nurses feel it every single day. '
    'They train so that fear sharpens their focus instead of freezing them. Finally, courage '
    'grows with practice. Each small brave act makes the next one easier, and as a result we '
    'become people who can face larger challenges. In conclusion, courage is not the opposite of '
    'fear but a decision we make while fear is still present, and that decision is available to '
    'every one of us.'
)


def judgment(
    content=7.5,
    delivery=7.0,
    language=7.2,
    body=6.8,
    overall=7.2,
    classification='normal',
    **extra,
) -> dict:
    data = {
        'classification': classification,
        'overallScore': overall,
        'categoryScores': {
            'content': {'score': content, 'weight': 0.40},
            'delivery': {'score': delivery, 'weight': 0.30},
            'language': {'score': language, 'weight': 0.15},
            'bodyLanguage': {'score': body, 'weight': 0.15},
        },
        'bodyLanguageAnalysis': {
            'eyeContact': {'score': body, 'percentage': 55, 'feedback': 'Good eye contact.'},
            'gestures': {'score': body, 'feedback': 'Natural gestures.'},
        },
        'strengths': ['Clear roadmap'],
        'practiceDrill': 'Signpost drill.',
    }
    data.update(extra)
    return data


class ScriptedLLM(JudgeLLMPort):
    """Returns queued replies in order; an Exception in the queue is raised instead."""

    def __init__(self, replies: Optional[List] = None):
        self.replies = list(replies or [])
        self.calls: List[dict] = []

    async def complete(self, prompt, *, system, temperature=None, max_tokens=None):
        self.calls.append(
            {'prompt': prompt, 'system': system, 'temperature': temperature, 'max_tokens': max_tokens}
        )
        if not self.replies:
            raise ModelProviderFailure('no scripted reply left')
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, dict):
            return json.dumps(reply)
        return reply


@pytest.fixture()
def scripted_llm():
    return ScriptedLLM([judgment()])


@pytest.fixture()
def coordinator(scripted_llm):
    from app.adapters.repositories.memory import InMemorySessionStore
    from app.infra.service import build_coordinator

    return build_coordinator(scripted_llm, InMemorySessionStore())


@pytest.fixture()
def client(coordinator):
    from app.infra.service import get_coordinator, get_session_store
    from app.main import app

    app.dependency_overrides[get_coordinator] = lambda: coordinator
    app.dependency_overrides[get_session_store] = lambda: coordinator.session_store
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()
