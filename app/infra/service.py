from typing import Optional

from fastapi import Request

from app.adapters.repositories.memory import InMemoryJobStore
from app.domain.ports.job_store import JobStorePort
from app.domain.ports.llm import JudgeLLMPort
from app.domain.ports.session_store import SessionStorePort
from app.services.analysis_service import AnalysisService
from app.services.coordinator import AnalysisJobCoordinator
from app.services.recovery import ModelResponseRecoverer
from app.settings import Settings, settings


def build_coordinator(
    llm: JudgeLLMPort,
    session_store: SessionStorePort,
    *,
    job_store: Optional[JobStorePort] = None,
    config: Settings = settings,
) -> AnalysisJobCoordinator:
    recoverer = ModelResponseRecoverer(
        llm,
        temperature=config.JUDGE_TEMPERATURE,
        max_tokens=config.JUDGE_MAX_TOKENS,
        max_retries=config.MODEL_MAX_RETRIES,
        backoff_seconds=config.MODEL_RETRY_BACKOFF_SECONDS,
        log_preview=config.RAW_OUTPUT_LOG_PREVIEW,
    )
    service = AnalysisService(
        recoverer,
        skip_model_on_heuristic_fail=config.SKIP_MODEL_ON_HEURISTIC_FAIL,
    )
    return AnalysisJobCoordinator(
        service=service,
        job_store=job_store or InMemoryJobStore(),
        session_store=session_store,
    )


def get_coordinator(request: Request) -> AnalysisJobCoordinator:
    return request.app.state.coordinator


def get_session_store(request: Request) -> SessionStorePort:
    return request.app.state.session_store
