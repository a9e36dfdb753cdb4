import abc
from typing import Optional


class JudgeLLMPort(abc.ABC):
    @abc.abstractmethod
    async def complete(
        self,
        prompt: str,
        *,
        system: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """
        Send one prompt to the judging model and return its raw text completion.
        Transport/provider errors and empty completions raise ModelProviderFailure.
        The returned text is untrusted and unstructured.
        """
        raise NotImplementedError
