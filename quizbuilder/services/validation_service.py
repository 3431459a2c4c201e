"""
Validation of questions and drafts.

Validation never raises and never mutates its input: it returns structured,
field-level error sets that the editor shows inline. A draft may be submitted
only when every set is empty.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from quizbuilder.config import (
    ANSWER_OPTION_TEXT_MAX_LENGTH,
    DESCRIPTION_MAX_LENGTH,
    FILL_IN_THE_BLANK_MAX_LENGTH,
    MATCHING_TEXT_MAX_LENGTH,
    QUESTION_TEXT_MAX_LENGTH,
    TITLE_MAX_LENGTH,
)
from quizbuilder.models.collection import QuestionCollection
from quizbuilder.models.questions import (
    FillInBlankTask,
    MatchingTask,
    MultipleChoiceTask,
    Question,
    SingleChoiceTask,
    task_shape_error,
)

if TYPE_CHECKING:
    from quizbuilder.services.draft_service import TestDraft


REQUIRED_MESSAGE = "Required field"
DUPLICATE_MESSAGE = "Duplicate values are not allowed"
QUESTIONS_INVALID_MESSAGE = "Fix the errors in the questions before saving"


@dataclass
class QuestionErrors:
    """Field errors of one question; list entries are index-aligned."""

    text: str | None = None
    options: list[str | None] | None = None
    answer_pairs: list[list[str | None]] | None = None
    fill_in_blank_answer: str | None = None
    answer: str | None = None  # option counts and correct-answer marks

    def __bool__(self) -> bool:
        return any(
            value is not None
            for value in (
                self.text,
                self.options,
                self.answer_pairs,
                self.fill_in_blank_answer,
                self.answer,
            )
        )

    def to_dict(self) -> dict[str, object]:
        """Only the fields that carry errors, with wire names."""
        result: dict[str, object] = {}
        if self.text is not None:
            result["text"] = self.text
        if self.options is not None:
            result["options"] = self.options
        if self.answer_pairs is not None:
            result["answerPairs"] = self.answer_pairs
        if self.fill_in_blank_answer is not None:
            result["fillInBlankAnswer"] = self.fill_in_blank_answer
        if self.answer is not None:
            result["answer"] = self.answer
        return result


@dataclass
class DraftErrors:
    """Errors of a whole draft: test metadata plus every failing question."""

    title: str | None = None
    description: str | None = None
    questions: dict[str, QuestionErrors] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return bool(self.title or self.description or self.questions)

    @property
    def message(self) -> str | None:
        """Single aggregate notification, shown next to the field details."""
        return QUESTIONS_INVALID_MESSAGE if self else None

    def to_dict(self) -> dict[str, object]:
        return {
            "message": self.message,
            "title": self.title,
            "description": self.description,
            "questions": {key: errors.to_dict() for key, errors in self.questions.items()},
        }


def _normalize(value: str) -> str:
    return value.strip().casefold()


def validate_title(value: str) -> str | None:
    if not value.strip():
        return REQUIRED_MESSAGE
    if len(value) > TITLE_MAX_LENGTH:
        return f"Title must not exceed {TITLE_MAX_LENGTH} characters"
    return None


def validate_description(value: str | None) -> str | None:
    if value and len(value) > DESCRIPTION_MAX_LENGTH:
        return f"Description must not exceed {DESCRIPTION_MAX_LENGTH} characters"
    return None


def _validate_text(question: Question) -> str | None:
    if not question.text or not question.text.strip():
        return REQUIRED_MESSAGE
    if len(question.text) > QUESTION_TEXT_MAX_LENGTH:
        return f"Question text must not exceed {QUESTION_TEXT_MAX_LENGTH} characters"
    return None


def _validate_options(options: list[str]) -> list[str | None] | None:
    errors: list[str | None] = []
    for option in options:
        if not option.strip():
            errors.append(REQUIRED_MESSAGE)
        elif len(option) > ANSWER_OPTION_TEXT_MAX_LENGTH:
            errors.append(
                f"Answer option must not exceed {ANSWER_OPTION_TEXT_MAX_LENGTH} characters"
            )
        else:
            errors.append(None)
    return errors if any(errors) else None


def _validate_pairs(pairs: list[tuple[str, str]]) -> list[list[str | None]] | None:
    """Check both columns of every pair.

    Duplicates are counted across both columns together, case- and
    whitespace-insensitively, and every occurrence of a duplicated value is
    flagged.
    """
    occurrences = Counter(
        _normalize(value) for pair in pairs for value in pair if value.strip()
    )

    errors: list[list[str | None]] = []
    for pair in pairs:
        pair_errors: list[str | None] = []
        for value in pair:
            trimmed = value.strip()
            if not trimmed:
                pair_errors.append(REQUIRED_MESSAGE)
            elif len(trimmed) > MATCHING_TEXT_MAX_LENGTH:
                pair_errors.append(f"Maximum length is {MATCHING_TEXT_MAX_LENGTH} characters")
            elif occurrences[_normalize(trimmed)] > 1:
                pair_errors.append(DUPLICATE_MESSAGE)
            else:
                pair_errors.append(None)
        errors.append(pair_errors)

    if any(any(pair_errors) for pair_errors in errors):
        return errors
    return None


def _validate_fill_in_blank(answer: str) -> str | None:
    if not answer.strip():
        return REQUIRED_MESSAGE
    if len(answer) > FILL_IN_THE_BLANK_MAX_LENGTH:
        return f"Answer must not exceed {FILL_IN_THE_BLANK_MAX_LENGTH} characters"
    return None


def validate_question(question: Question) -> QuestionErrors:
    """Validate one question; an empty (falsy) result means valid."""
    errors = QuestionErrors()
    if question.has_prompt:
        errors.text = _validate_text(question)

    task = question.task
    errors.answer = task_shape_error(task)
    if isinstance(task, (SingleChoiceTask, MultipleChoiceTask)):
        errors.options = _validate_options(task.options)
    elif isinstance(task, MatchingTask):
        errors.answer_pairs = _validate_pairs(task.answer)
    elif isinstance(task, FillInBlankTask):
        errors.fill_in_blank_answer = _validate_fill_in_blank(task.answer)
    return errors


def validate_collection(collection: QuestionCollection) -> dict[str, QuestionErrors]:
    """Validate every question; only failing questions appear in the result."""
    results: dict[str, QuestionErrors] = {}
    for entry in collection:
        errors = validate_question(entry.question)
        if errors:
            results[entry.key] = errors
    return results


def validate_draft(draft: TestDraft) -> DraftErrors:
    """Full pass that gates submission of a draft."""
    return DraftErrors(
        title=validate_title(draft.title),
        description=validate_description(draft.description),
        questions=validate_collection(draft.questions),
    )
