from typing import Optional

from app.domain.errors import ModelNotConfigured
from app.domain.ports.llm import JudgeLLMPort


class UnconfiguredLLMAdapter(JudgeLLMPort):
    """
    Stand-in for a real provider whose API key is missing. Every call fails
    with ModelNotConfigured, so jobs end in a model_error instead of a score.
    """

    def __init__(self, provider: str, key_name: str):
        self.provider = provider
        self.key_name = key_name

    async def complete(
        self,
        prompt: str,
        *,
        system: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        raise ModelNotConfigured(f'LLM_PROVIDER={self.provider} but {self.key_name} is not set')
