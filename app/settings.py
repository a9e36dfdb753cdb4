from functools import lru_cache
from typing import Optional

from pydantic import PostgresDsn
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.adapters.llm.constants import Provider


class Settings(BaseSettings):
    # Storage
    DATABASE_URL: Optional[PostgresDsn] = None
    USE_INMEMORY_REPO: bool = True
    DISABLE_DB_POOL: bool = True
    POOL_MIN: int = 1
    POOL_MAX: int = 5

    # Judging model
    LLM_PROVIDER: Provider = Provider.OPENAI
    # None picks the provider's default model
    LLM_MODEL: Optional[str] = None
    OPENAI_API_KEY: Optional[str] = None
    ANTHROPIC_API_KEY: Optional[str] = None
    JUDGE_TEMPERATURE: float = 0.1
    JUDGE_MAX_TOKENS: int = 7000
    MODEL_MAX_RETRIES: int = 2
    MODEL_RETRY_BACKOFF_SECONDS: float = 1.0

    # Pipeline
    SKIP_MODEL_ON_HEURISTIC_FAIL: bool = True
    RAW_OUTPUT_LOG_PREVIEW: int = 500

    LOG_LEVEL: str = 'INFO'

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
