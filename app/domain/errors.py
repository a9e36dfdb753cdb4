from typing import Optional

from app.domain.enums import Classification, FailureType


class DomainError(Exception):
    pass


# ----- transcript screening (recoverable) -----
class InsufficientTranscript(DomainError):
    """The transcript cannot be scored fairly; a guarded result is produced instead."""

    label: Classification = Classification.TOO_SHORT

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class TranscriptTooShort(InsufficientTranscript):
    label = Classification.TOO_SHORT


class TranscriptNonsense(InsufficientTranscript):
    label = Classification.NONSENSE


# ----- judging model (surfaced as job error) -----
class JudgmentFailure(DomainError):
    """
    The judging model did not yield a usable judgment.

    Carries the verbatim raw output for support tooling. Never paired with a
    score: callers surface the failure instead of substituting a default.
    """

    error_type: FailureType = FailureType.PARSE_FAILURE
    user_message: str = 'Analysis failed: the judging model returned an unusable response.'

    def __init__(
        self,
        message: str,
        *,
        raw_output: str = '',
        parse_fail_count: int = 0,
        repair_attempted: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.raw_output = raw_output
        self.parse_fail_count = parse_fail_count
        self.repair_attempted = repair_attempted


class ModelParseFailure(JudgmentFailure):
    error_type = FailureType.PARSE_FAILURE
    user_message = (
        'Analysis failed: the model returned invalid JSON that could not be parsed or repaired.'
    )


class SchemaValidationFailure(JudgmentFailure):
    error_type = FailureType.SCHEMA_VALIDATION
    user_message = (
        'Analysis failed: the model response was missing required scoring fields.'
    )


class ModelProviderFailure(JudgmentFailure):
    error_type = FailureType.MODEL_ERROR
    user_message = 'Analysis failed: the judging service is unavailable. Please try again later.'
    retryable = True


class ModelNotConfigured(ModelProviderFailure):
    """The selected provider has no credentials; retrying cannot help."""

    user_message = 'Analysis failed: no judging model is configured on the server.'
    retryable = False


# ----- jobs / sessions -----
class JobNotFound(DomainError):
    def __init__(self, session_id: str, job_id: Optional[str] = None):
        super().__init__(f'No analysis job {job_id!r} for session {session_id!r}')
        self.session_id = session_id
        self.job_id = job_id


class SessionNotFound(DomainError):
    def __init__(self, session_id: str):
        super().__init__(f'No stored analysis for session {session_id!r}')
        self.session_id = session_id


class InvalidJobTransition(DomainError):
    pass
