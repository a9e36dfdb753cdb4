import copy
from typing import Any, Dict, Optional

from app.domain.models import AnalysisJob
from app.domain.ports.job_store import JobStorePort
from app.domain.ports.session_store import SessionStorePort


class InMemoryJobStore(JobStorePort):
    """
    Job records keyed by id, plus a session -> job index.
    Records are frozen, so handing out the stored object is a safe snapshot.
    """

    def __init__(self):
        self._jobs: Dict[str, AnalysisJob] = {}
        self._by_session: Dict[str, str] = {}

    def get(self, job_id: str) -> Optional[AnalysisJob]:
        return self._jobs.get(job_id)

    def get_by_session(self, session_id: str) -> Optional[AnalysisJob]:
        job_id = self._by_session.get(session_id)
        return self._jobs.get(job_id) if job_id else None

    def put(self, job: AnalysisJob) -> None:
        self._jobs[job.id] = job
        self._by_session.setdefault(job.session_id, job.id)


class InMemorySessionStore(SessionStorePort):
    def __init__(self):
        self._sessions: Dict[str, Dict[str, Any]] = {}

    async def save(self, session_id: str, payload: Dict[str, Any]) -> None:
        self._sessions[session_id] = copy.deepcopy(payload)

    async def load(self, session_id: str) -> Optional[Dict[str, Any]]:
        payload = self._sessions.get(session_id)
        return copy.deepcopy(payload) if payload is not None else None
