import abc
from typing import Optional

from app.domain.models import AnalysisJob


class JobStorePort(abc.ABC):
    """Holds the current record of every job. Records are replaced, never edited."""

    @abc.abstractmethod
    def get(self, job_id: str) -> Optional[AnalysisJob]:
        raise NotImplementedError

    @abc.abstractmethod
    def get_by_session(self, session_id: str) -> Optional[AnalysisJob]:
        raise NotImplementedError

    @abc.abstractmethod
    def put(self, job: AnalysisJob) -> None:
        raise NotImplementedError
