from enum import Enum


class Classification(str, Enum):
    NORMAL = 'normal'
    TOO_SHORT = 'too_short'
    NONSENSE = 'nonsense'
    OFF_TOPIC = 'off_topic'
    MOSTLY_OFF_TOPIC = 'mostly_off_topic'


ALLOWED_LABELS = {c.value for c in Classification}


class JobStatus(str, Enum):
    QUEUED = 'queued'
    PROCESSING = 'processing'
    COMPLETE = 'complete'
    ERROR = 'error'

    @property
    def rank(self) -> int:
        # complete and error share the terminal rank
        return {'queued': 0, 'processing': 1, 'complete': 2, 'error': 2}[self.value]

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETE, JobStatus.ERROR)


class FailureType(str, Enum):
    PARSE_FAILURE = 'parse_failure'
    SCHEMA_VALIDATION = 'schema_validation'
    MODEL_ERROR = 'model_error'
    INTERNAL_ERROR = 'internal_error'
