"""Pydantic models."""
from quizbuilder.models.attempts import (
    AttemptFinishRequest,
    AttemptStart,
    BlankFill,
    OptionSelect,
    OptionToggle,
)
from quizbuilder.models.drafts import (
    AnswerOptionUpdate,
    AnswerToggle,
    DraftCreate,
    DraftMetaUpdate,
    MatchingClick,
    QuestionTypeUpdate,
    QuestionUpdate,
    ReorderRequest,
    TaskUpdate,
)
from quizbuilder.models.submissions import (
    AnswerResult,
    AnswerResultSubmission,
    FetchedTest,
    QuestionSubmission,
    TestResult,
    TestSubmission,
)

__all__ = [
    "AnswerOptionUpdate",
    "AnswerResult",
    "AnswerResultSubmission",
    "AnswerToggle",
    "AttemptFinishRequest",
    "AttemptStart",
    "BlankFill",
    "DraftCreate",
    "DraftMetaUpdate",
    "FetchedTest",
    "MatchingClick",
    "OptionSelect",
    "OptionToggle",
    "QuestionSubmission",
    "QuestionTypeUpdate",
    "QuestionUpdate",
    "ReorderRequest",
    "TaskUpdate",
    "TestResult",
    "TestSubmission",
]
