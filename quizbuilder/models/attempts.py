"""Quiz session Pydantic models."""
from pydantic import BaseModel, Field


class AttemptStart(BaseModel):
    """Model for starting a quiz session on a stored test."""

    testId: int = Field(..., ge=1)
    testResultId: int = Field(..., ge=1)


class OptionSelect(BaseModel):
    index: int = Field(..., ge=0)


class OptionToggle(BaseModel):
    index: int = Field(..., ge=0)
    checked: bool


class BlankFill(BaseModel):
    text: str


class AttemptFinishRequest(BaseModel):
    """Model for finishing a session; unanswered questions need ``confirmed``."""

    confirmed: bool = False
