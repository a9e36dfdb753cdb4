import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.domain.models import FramingEvidence, Submission


class FramingIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    head_visible: bool = Field(False, alias='headVisible')
    torso_visible: bool = Field(False, alias='torsoVisible')
    hands_visible: bool = Field(False, alias='handsVisible')


class AnalysisRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: Optional[str] = Field(None, alias='sessionId', min_length=1, max_length=128)
    transcript: str = ''
    duration_seconds: float = Field(0.0, alias='durationSeconds', ge=0)
    word_count: Optional[int] = Field(None, alias='wordCount', ge=0)
    # missing framing means body language cannot be assessed
    framing: FramingIn = Field(default_factory=FramingIn)
    theme: str = ''
    quote: str = ''

    def to_submission(self) -> Submission:
        return Submission(
            session_id=self.session_id or uuid.uuid4().hex,
            transcript=self.transcript,
            duration_seconds=self.duration_seconds,
            framing=FramingEvidence(
                head_visible=self.framing.head_visible,
                torso_visible=self.framing.torso_visible,
                hands_visible=self.framing.hands_visible,
            ),
            theme=self.theme,
            quote=self.quote,
            word_count=self.word_count,
        )


class AnalysisStarted(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias='sessionId')
    job_id: str = Field(alias='jobId')
    status: str
