import logging
from typing import Iterable, Optional

from openai import AsyncOpenAI, OpenAIError

from app.adapters.llm.constants import OpenAIModels
from app.domain.errors import ModelProviderFailure
from app.domain.ports.llm import JudgeLLMPort

logger = logging.getLogger(__name__)


class OpenAIAdapter(JudgeLLMPort):
    """
    Judging-model adapter over the OpenAI Responses API.
    Returns the raw completion text; parsing is the recoverer's job.
    """

    def __init__(
        self,
        api_key: str,
        client: Optional[AsyncOpenAI] = None,
        model: OpenAIModels = OpenAIModels.GPT_4O,
        temperature: float = 0.1,
        max_output_tokens: int = 7000,
    ):
        self.client = client or AsyncOpenAI(api_key=api_key)
        self.model = model
        self.temperature = float(temperature)
        self.max_output_tokens = int(max_output_tokens)

    # ---------- low-level request ----------

    async def _request(
        self,
        input_msgs: Iterable[dict],
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        resp = await self.client.responses.create(
            model=self.model,
            input=list(input_msgs),
            temperature=self._pick_temp(temperature),
            max_output_tokens=self._pick_max_tokens(max_tokens),
        )
        return resp.output_text

    def _pick_temp(self, override: Optional[float]) -> float:
        return float(self.temperature if override is None else override)

    def _pick_max_tokens(self, override: Optional[int]) -> int:
        return int(self.max_output_tokens if override is None else override)

    # ---------- port ----------

    async def complete(
        self,
        prompt: str,
        *,
        system: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        msgs = [
            {'role': 'system', 'content': system},
            {'role': 'user', 'content': prompt},
        ]
        logger.info(
            '[judge.req] provider=openai model=%s prompt_chars=%d', self.model, len(prompt)
        )
        try:
            out = await self._request(msgs, temperature=temperature, max_tokens=max_tokens)
        except OpenAIError as e:
            logger.warning('[judge.provider_error] provider=openai err=%s', e)
            raise ModelProviderFailure(f'OpenAI request failed: {e}') from e

        if not (out or '').strip():
            raise ModelProviderFailure('OpenAI returned an empty completion')
        return out
