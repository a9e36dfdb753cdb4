import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.domain.errors import InvalidJobTransition, JobNotFound, SessionNotFound

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(JobNotFound)
    async def job_not_found_handler(request: Request, exc: JobNotFound):
        return JSONResponse(status_code=404, content={'detail': str(exc)})

    @app.exception_handler(SessionNotFound)
    async def session_not_found_handler(request: Request, exc: SessionNotFound):
        return JSONResponse(status_code=404, content={'detail': str(exc)})

    @app.exception_handler(InvalidJobTransition)
    async def invalid_transition_handler(request: Request, exc: InvalidJobTransition):
        logger.error('[api.invalid_transition] %s', exc)
        return JSONResponse(status_code=409, content={'detail': str(exc)})
