"""
Question variants.

A question carries one of four task payloads; the payload class is the
discriminator, so a question's type can never disagree with the shape of its
task.
"""

from __future__ import annotations

import copy
import enum
import uuid
from dataclasses import dataclass, field
from typing import ClassVar, Union

from quizbuilder.config import ANSWER_OPTION_MAX, ANSWER_OPTION_MIN


class QuestionType(enum.IntEnum):
    """Question variant, numbered as on the wire."""

    SINGLE_CHOICE = 0
    MULTIPLE_CHOICE = 1
    MATCHING = 2
    FILL_IN_BLANK = 3


@dataclass
class SingleChoiceTask:
    """Options with a parallel answer vector holding exactly one True."""

    question_type: ClassVar[QuestionType] = QuestionType.SINGLE_CHOICE

    options: list[str] = field(default_factory=lambda: ["", ""])
    answer: list[bool] = field(default_factory=lambda: [True, False])

    def __post_init__(self) -> None:
        self.options = [str(option) for option in self.options]
        self.answer = [bool(value) for value in self.answer]


@dataclass
class MultipleChoiceTask:
    """Options with a parallel answer vector holding at least one True."""

    question_type: ClassVar[QuestionType] = QuestionType.MULTIPLE_CHOICE

    options: list[str] = field(default_factory=lambda: ["", ""])
    answer: list[bool] = field(default_factory=lambda: [True, False])

    def __post_init__(self) -> None:
        self.options = [str(option) for option in self.options]
        self.answer = [bool(value) for value in self.answer]


@dataclass
class MatchingTask:
    """Term/definition pairs; both columns live in ``answer``."""

    question_type: ClassVar[QuestionType] = QuestionType.MATCHING

    answer: list[tuple[str, str]] = field(
        default_factory=lambda: [("", ""), ("", "")]
    )

    def __post_init__(self) -> None:
        pairs = []
        for pair in self.answer:
            term, definition = pair
            pairs.append((str(term), str(definition)))
        self.answer = pairs


@dataclass
class FillInBlankTask:
    """The accepted completion of the blank."""

    question_type: ClassVar[QuestionType] = QuestionType.FILL_IN_BLANK

    answer: str = ""

    def __post_init__(self) -> None:
        self.answer = str(self.answer)


Task = Union[SingleChoiceTask, MultipleChoiceTask, MatchingTask, FillInBlankTask]

TASK_CLASSES: dict[QuestionType, type] = {
    QuestionType.SINGLE_CHOICE: SingleChoiceTask,
    QuestionType.MULTIPLE_CHOICE: MultipleChoiceTask,
    QuestionType.MATCHING: MatchingTask,
    QuestionType.FILL_IN_BLANK: FillInBlankTask,
}

CHOICE_TYPES = frozenset({QuestionType.SINGLE_CHOICE, QuestionType.MULTIPLE_CHOICE})


def task_shape_error(task: Task) -> str | None:
    """Describe why a payload's option/answer structure is invalid, if it is.

    Option counts, parallel lengths and the number of correct answers are
    checked here; text contents are left to the validator.
    """
    if isinstance(task, (SingleChoiceTask, MultipleChoiceTask)):
        if not ANSWER_OPTION_MIN <= len(task.options) <= ANSWER_OPTION_MAX - 1:
            return (
                f"A choice question needs {ANSWER_OPTION_MIN} to "
                f"{ANSWER_OPTION_MAX - 1} options"
            )
        if len(task.options) != len(task.answer):
            return "Options and answer must have the same length"
        correct = sum(task.answer)
        if isinstance(task, SingleChoiceTask) and correct != 1:
            return "Exactly one option must be marked as correct"
        if correct < 1:
            return "At least one option must be marked as correct"
    elif isinstance(task, MatchingTask):
        if not ANSWER_OPTION_MIN <= len(task.answer) <= ANSWER_OPTION_MAX:
            return f"A matching question needs {ANSWER_OPTION_MIN} to {ANSWER_OPTION_MAX} pairs"
    return None


def default_task(question_type: QuestionType | int) -> Task:
    """Build the default payload of a question variant."""
    return TASK_CLASSES[QuestionType(question_type)]()


def new_question_key() -> str:
    """Generate an authoring key for a not-yet-persisted question."""
    return str(uuid.uuid4())


@dataclass
class Question:
    """One quiz question as edited by an author or shown to a learner."""

    task: Task = field(default_factory=SingleChoiceTask)
    text: str = ""
    image_url: str | None = None
    id: int = 0
    test_id: int = 0
    index: int = 0  # recomputed from collection order on serialization

    @property
    def type(self) -> QuestionType:
        return self.task.question_type

    @property
    def has_prompt(self) -> bool:
        """Matching questions have no single prompt."""
        return self.type != QuestionType.MATCHING

    def copy(self) -> Question:
        return copy.deepcopy(self)


def create_default_question(
    question_type: QuestionType | int = QuestionType.SINGLE_CHOICE,
) -> Question:
    """Create an empty question of the given variant."""
    return Question(task=default_task(question_type))
