"""Wire models exchanged with the persistence and grading service."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class QuestionSubmission(BaseModel):
    """One question as stored by the persistence service.

    ``taskJson`` is an opaque blob to the service; only the type number says
    how to read it back.
    """

    id: int = 0
    testId: int = 0
    index: int = 0
    type: int = Field(..., ge=0, le=3)
    text: str | None = None
    taskJson: str
    imageUrl: str | None = None


class TestSubmission(BaseModel):
    """Payload for creating or updating a test."""

    title: str
    description: str | None = None
    questions: list[QuestionSubmission]


class AnswerResultSubmission(BaseModel):
    """One learner answer handed to grading."""

    questionId: int
    type: int = Field(..., ge=0, le=3)
    userAnswerJson: str


class FetchedTest(BaseModel):
    """A stored test, as returned for editing or passing."""

    model_config = ConfigDict(extra="ignore")

    id: int
    userId: int | None = None
    title: str
    description: str | None = None
    questions: list[QuestionSubmission] = []
    createdAt: datetime | None = None
    updatedAt: datetime | None = None


class AnswerResult(BaseModel):
    """Graded answer; only its presence matters here."""

    model_config = ConfigDict(extra="allow")

    id: int = 0
    questionId: int = 0


class TestResult(BaseModel):
    """A past attempt of one learner at one test."""

    model_config = ConfigDict(extra="ignore")

    id: int
    testId: int
    userId: int = 0
    attempt: int = 0
    score: float | None = None
    startedAt: datetime | None = None
    endedAt: datetime | None = None
    answerResults: list[AnswerResult] = []
