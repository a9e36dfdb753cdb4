# app/services/coordinator.py
import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict

from app.domain.enums import FailureType
from app.domain.errors import JobNotFound, JudgmentFailure
from app.domain.models import AnalysisJob, ErrorDetails, Submission
from app.domain.ports.job_store import JobStorePort
from app.domain.ports.session_store import SessionStorePort
from app.services.analysis_service import AnalysisService
from app.services.progress import estimate_progress

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = 'Analysis failed due to an internal error. Please try again later.'


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AnalysisJobCoordinator:
    """
    Owns the job lifecycle: queued -> processing -> complete | error.

    - start() is idempotent per session id; a repeated start returns the
      existing job and never schedules a second model call.
    - exactly one worker task per job, and only that worker writes the record.
    - poll() only reads; progress is computed on the returned copy.
    """

    def __init__(
        self,
        service: AnalysisService,
        job_store: JobStorePort,
        session_store: SessionStorePort,
        *,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = lambda: uuid.uuid4().hex,
    ):
        self.service = service
        self.job_store = job_store
        self.session_store = session_store
        self._clock = clock
        self._new_id = id_factory
        self._lock = asyncio.Lock()
        self._tasks: Dict[str, asyncio.Task] = {}

    # ---------- public ----------

    async def start(self, submission: Submission) -> AnalysisJob:
        async with self._lock:
            existing = self.job_store.get_by_session(submission.session_id)
            if existing is not None:
                logger.info(
                    '[job.start.dedup] session=%s job=%s status=%s',
                    submission.session_id,
                    existing.id,
                    existing.status.value,
                )
                return self._snapshot(existing)

            job = AnalysisJob.new(self._new_id(), submission.session_id, self._clock())
            self.job_store.put(job)
            task = asyncio.create_task(self._work(job.id, submission))
            self._tasks[job.id] = task
            task.add_done_callback(lambda _t, jid=job.id: self._tasks.pop(jid, None))

        logger.info('[job.start] session=%s job=%s', job.session_id, job.id)
        return self._snapshot(job)

    async def poll(self, session_id: str, job_id: str) -> AnalysisJob:
        job = self.job_store.get(job_id)
        if job is None or job.session_id != session_id:
            raise JobNotFound(session_id, job_id)
        return self._snapshot(job)

    async def wait(self, job_id: str) -> AnalysisJob:
        task = self._tasks.get(job_id)
        if task is not None:
            await task
        job = self.job_store.get(job_id)
        if job is None:
            raise JobNotFound('', job_id)
        return job

    async def shutdown(self) -> None:
        tasks = list(self._tasks.values())
        for t in tasks:
            t.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info('[job.shutdown] cancelled=%d', len(tasks))

    # ---------- internals ----------

    def _snapshot(self, job: AnalysisJob) -> AnalysisJob:
        if job.status.is_terminal:
            return job
        elapsed = job.elapsed_seconds(self._clock())
        return job.with_progress(estimate_progress(job.status, elapsed, job.progress))

    async def _work(self, job_id: str, submission: Submission) -> None:
        job = self.job_store.get(job_id).mark_processing(self._clock())
        self.job_store.put(job)

        try:
            result = await self.service.run(submission)
        except JudgmentFailure as e:
            self._fail(
                job,
                e.user_message,
                ErrorDetails(
                    type=e.error_type,
                    message=e.message,
                    raw_model_output=e.raw_output,
                    parse_fail_count=e.parse_fail_count,
                    repair_used=e.repair_attempted,
                ),
            )
            return
        except Exception as e:
            logger.exception('[job.internal_error] job=%s', job.id)
            self._fail(
                job,
                INTERNAL_ERROR_MESSAGE,
                ErrorDetails(type=FailureType.INTERNAL_ERROR, message=str(e) or type(e).__name__),
            )
            return

        done = job.mark_complete(self._clock(), result)
        self.job_store.put(done)
        logger.info(
            '[job.complete] session=%s job=%s overall=%.1f classification=%s',
            done.session_id,
            done.id,
            result.overall_score,
            result.classification.value,
        )

        try:
            await self.session_store.save(done.session_id, result.to_dict())
        except Exception:
            # the job stays complete; the stored copy is best-effort
            logger.exception('[job.session_store_failed] session=%s', done.session_id)

    def _fail(self, job: AnalysisJob, message: str, details: ErrorDetails) -> None:
        progress = self._snapshot(job).progress
        failed = job.mark_error(self._clock(), message, details, progress)
        self.job_store.put(failed)
        logger.warning(
            '[job.error] session=%s job=%s type=%s parse_fail_count=%d',
            job.session_id,
            job.id,
            details.type.value,
            details.parse_fail_count,
        )
