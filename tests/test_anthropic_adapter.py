from types import SimpleNamespace

import anthropic
import httpx
import pytest

from app.adapters.llm.anthropic import AnthropicAdapter
from app.domain.errors import ModelProviderFailure

pytestmark = pytest.mark.unit


class FakeMessages:
    def __init__(self, calls, blocks=None, error=None):
        self.calls = calls
        self._blocks = blocks if blocks is not None else [
            SimpleNamespace(type='text', text='{"overallScore": '),
            SimpleNamespace(type='text', text='7.0}'),
        ]
        self._error = error

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self._error is not None:
            raise self._error
        # Anthropic returns .content: list of blocks with .type='text' and .text
        return SimpleNamespace(content=self._blocks)


class FakeAsyncAnthropic:
    def __init__(self, calls, **kwargs):
        self.messages = FakeMessages(calls, **kwargs)


def test_adapter_config_defaults():
    client = FakeAsyncAnthropic([])
    adapter = AnthropicAdapter(api_key='test', client=client)

    assert adapter.client is client
    assert adapter.temperature == 0.1
    assert adapter.max_output_tokens == 7000
    assert adapter.model == 'claude-3-5-sonnet-latest'


@pytest.mark.asyncio
async def test_complete_joins_text_blocks_and_sends_top_level_system():
    calls = []
    adapter = AnthropicAdapter(
        api_key='sk-test',
        client=FakeAsyncAnthropic(calls),
        model='claude-3-5-sonnet-latest',
        temperature=0.3,
        max_output_tokens=120,
    )

    out = await adapter.complete('score this', system='you are a judge')
    assert out == '{"overallScore": 7.0}'

    sent = calls[0]
    assert sent['model'] == 'claude-3-5-sonnet-latest'
    assert sent['temperature'] == 0.3
    assert sent['max_tokens'] == 120
    assert sent['system'] == 'you are a judge'
    msgs = sent['messages']
    assert len(msgs) == 1 and msgs[0]['role'] == 'user'
    assert msgs[0]['content'][0] == {'type': 'text', 'text': 'score this'}


@pytest.mark.asyncio
async def test_non_text_blocks_are_ignored_and_empty_raises():
    blocks = [SimpleNamespace(type='tool_use', text='ignored')]
    adapter = AnthropicAdapter(api_key='k', client=FakeAsyncAnthropic([], blocks=blocks))

    with pytest.raises(ModelProviderFailure):
        await adapter.complete('p', system='s')


@pytest.mark.asyncio
async def test_sdk_error_is_wrapped():
    err = anthropic.APIConnectionError(request=httpx.Request('POST', 'https://api.anthropic.com'))
    adapter = AnthropicAdapter(api_key='k', client=FakeAsyncAnthropic([], error=err))

    with pytest.raises(ModelProviderFailure):
        await adapter.complete('p', system='s')
