import logging
from typing import Iterable, Optional

from anthropic import AnthropicError, AsyncAnthropic

from app.adapters.llm.constants import AnthropicModels
from app.domain.errors import ModelProviderFailure
from app.domain.ports.llm import JudgeLLMPort

logger = logging.getLogger(__name__)


class AnthropicAdapter(JudgeLLMPort):
    def __init__(
        self,
        api_key: str,
        client: Optional[AsyncAnthropic] = None,
        model: AnthropicModels = AnthropicModels.CLAUDE_35,
        temperature: float = 0.1,
        max_output_tokens: int = 7000,
    ):
        self.client = client or AsyncAnthropic(api_key=api_key)
        self.model = model
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

    async def _request(
        self,
        *,
        messages: Iterable[dict],
        system: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        resp = await self.client.messages.create(
            model=self.model,
            system=system,
            messages=list(messages),
            temperature=self.temperature if temperature is None else temperature,
            max_tokens=self.max_output_tokens if max_tokens is None else max_tokens,
        )
        return self._parse_single_text(resp)

    @staticmethod
    def _parse_single_text(resp) -> str:
        # Join text blocks from the response into a single string
        return ''.join(
            block.text
            for block in getattr(resp, 'content', [])
            if getattr(block, 'type', None) == 'text'
        )

    async def complete(
        self,
        prompt: str,
        *,
        system: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        msgs = [{'role': 'user', 'content': [{'type': 'text', 'text': prompt}]}]
        logger.info(
            '[judge.req] provider=anthropic model=%s prompt_chars=%d',
            self.model,
            len(prompt),
        )
        try:
            out = await self._request(
                messages=msgs,
                system=system,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except AnthropicError as e:
            logger.warning('[judge.provider_error] provider=anthropic err=%s', e)
            raise ModelProviderFailure(f'Anthropic request failed: {e}') from e

        if not out.strip():
            raise ModelProviderFailure('Anthropic returned an empty completion')
        return out
