import logging
from functools import lru_cache

from app.adapters.llm.anthropic import AnthropicAdapter
from app.adapters.llm.constants import AnthropicModels, OpenAIModels, Provider
from app.adapters.llm.dummy import DummyLLMAdapter
from app.adapters.llm.openai import OpenAIAdapter
from app.adapters.llm.unconfigured import UnconfiguredLLMAdapter
from app.domain.ports.llm import JudgeLLMPort
from app.settings import settings

logger = logging.getLogger(__name__)

DEFAULT_MODELS = {
    Provider.OPENAI: OpenAIModels.GPT_4O.value,
    Provider.ANTHROPIC: AnthropicModels.CLAUDE_35.value,
}


def resolve_model(provider: Provider) -> str:
    # an explicit LLM_MODEL wins; otherwise each provider gets its own default
    return settings.LLM_MODEL or DEFAULT_MODELS[provider]


@lru_cache(maxsize=1)
def get_llm() -> JudgeLLMPort:
    provider = settings.LLM_PROVIDER

    if provider == Provider.DUMMY:
        logger.warning('[llm.dummy] scores come from a canned judgment, not a model')
        return DummyLLMAdapter()

    if provider == Provider.OPENAI:
        key, key_name, adapter_cls = settings.OPENAI_API_KEY, 'OPENAI_API_KEY', OpenAIAdapter
    else:
        key, key_name, adapter_cls = (
            settings.ANTHROPIC_API_KEY,
            'ANTHROPIC_API_KEY',
            AnthropicAdapter,
        )

    if not key:
        logger.error(
            '[llm.unconfigured] provider=%s %s is not set; analysis jobs will fail',
            provider.value,
            key_name,
        )
        return UnconfiguredLLMAdapter(provider.value, key_name)

    return adapter_cls(
        api_key=key,
        model=resolve_model(provider),
        temperature=settings.JUDGE_TEMPERATURE,
        max_output_tokens=settings.JUDGE_MAX_TOKENS,
    )


def reset_llm_singleton_cache() -> None:
    get_llm.cache_clear()
