# app/services/progress.py
import math
from typing import Optional

from app.domain.enums import JobStatus

QUEUED_CEILING = 20
PROCESSING_FLOOR = 20
PROCESSING_SPAN = 75  # asymptote at 95, never 100 before completion
PROCESSING_TAU_SECONDS = 60.0


def estimate_progress(
    status: JobStatus, elapsed_seconds: float, last_known: Optional[int] = None
) -> int:
    """
    Informational progress percentage.

    queued:     min(20, elapsed * 2), elapsed measured from creation
    processing: 20 + 75 * (1 - e^(-elapsed/60)), elapsed measured from start
    complete:   100
    error:      whatever was last observed before the failure
    """
    t = max(0.0, float(elapsed_seconds or 0.0))
    if status == JobStatus.COMPLETE:
        return 100
    if status == JobStatus.ERROR:
        return int(last_known or 0)
    if status == JobStatus.QUEUED:
        return int(min(QUEUED_CEILING, t * 2))
    return int(
        math.floor(
            PROCESSING_FLOOR + PROCESSING_SPAN * (1 - math.exp(-t / PROCESSING_TAU_SECONDS))
        )
    )
