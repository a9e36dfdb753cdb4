from fastapi import APIRouter, Depends, Query

from app.api.schemas import AnalysisRequest, AnalysisStarted
from app.domain.errors import SessionNotFound
from app.domain.ports.session_store import SessionStorePort
from app.infra.service import get_coordinator, get_session_store
from app.services.coordinator import AnalysisJobCoordinator

router = APIRouter()


@router.post('/analysis', status_code=202, response_model=AnalysisStarted)
async def start_analysis(
    req: AnalysisRequest,
    coordinator: AnalysisJobCoordinator = Depends(get_coordinator),
):
    job = await coordinator.start(req.to_submission())
    return AnalysisStarted(session_id=job.session_id, job_id=job.id, status=job.status.value)


@router.get('/analysis/status')
async def analysis_status(
    session_id: str = Query(..., alias='sessionId'),
    job_id: str = Query(..., alias='jobId'),
    coordinator: AnalysisJobCoordinator = Depends(get_coordinator),
):
    job = await coordinator.poll(session_id, job_id)
    return job.to_dict()


@router.get('/sessions/{session_id}')
async def get_session(
    session_id: str,
    store: SessionStorePort = Depends(get_session_store),
):
    payload = await store.load(session_id)
    if payload is None:
        raise SessionNotFound(session_id)
    return payload
