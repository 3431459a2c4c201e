"""Draft-related Pydantic models."""
from typing import Literal

from pydantic import BaseModel, Field


class DraftCreate(BaseModel):
    """Model for starting a draft; ``testId`` edits a stored test."""

    testId: int | None = Field(None, ge=1)
    title: str = ""
    description: str = ""


class DraftMetaUpdate(BaseModel):
    """Model for updating test metadata."""

    title: str | None = None
    description: str | None = None


class QuestionUpdate(BaseModel):
    """Model for updating prompt text or clearing the image."""

    text: str | None = None
    clearImage: bool = False


class QuestionTypeUpdate(BaseModel):
    type: int = Field(..., ge=0, le=3)


class TaskUpdate(BaseModel):
    """Partial task payload; only provided fields are merged."""

    options: list[str] | None = None
    answer: list[bool] | list[list[str]] | str | None = None


class ReorderRequest(BaseModel):
    movedKey: str = Field(..., min_length=1)
    targetKey: str = Field(..., min_length=1)


class AnswerOptionUpdate(BaseModel):
    value: str
    side: Literal[0, 1] | None = None


class AnswerToggle(BaseModel):
    checked: bool


class MatchingClick(BaseModel):
    """Click on the left (term) or right (definition) column."""

    side: Literal["left", "right"]
    index: int = Field(..., ge=0)
