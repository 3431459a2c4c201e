"""
Quiz-taking session.

The learner walks a fixed list of questions with Prev/Next. Answers are
captured as the learner interacts with each question and packaged only when
the attempt is finished.
"""

from __future__ import annotations

import copy
import enum
import logging
from dataclasses import dataclass, field
from typing import Callable, Union

from quizbuilder.models.questions import (
    MatchingTask,
    MultipleChoiceTask,
    Question,
    QuestionType,
    SingleChoiceTask,
)
from quizbuilder.services.matching_service import MatchingSelection, MatchResult

logger = logging.getLogger(__name__)

AnswerValue = Union[list[bool], str, list[tuple[str, str]]]


class SessionState(str, enum.Enum):
    """State of a quiz session."""

    ACTIVE = "active"
    FINISHED = "finished"


class FinishStatus(str, enum.Enum):
    """Result of a finish request."""

    CONFIRMATION_REQUIRED = "confirmation_required"
    FINISHED = "finished"


class SessionFinishedError(RuntimeError):
    """Raised when a finished session is asked to change."""


@dataclass
class UserAnswer:
    """The learner's answer to one question, shaped like the task answer."""

    question_id: int
    type: QuestionType
    answer: AnswerValue
    is_completed: bool = False
    # matching rows whose definition the learner placed explicitly
    matched_rows: set[int] = field(default_factory=set)


@dataclass
class FinishOutcome:
    """What finish did: the answers it sent, or the unanswered questions to confirm."""

    status: FinishStatus
    answers: list[UserAnswer] = field(default_factory=list)
    unanswered: list[int] = field(default_factory=list)


def initial_answer(question: Question) -> UserAnswer:
    """Blank answer for a question as shown to the learner."""
    task = question.task
    if isinstance(task, (SingleChoiceTask, MultipleChoiceTask)):
        value: AnswerValue = [False] * len(task.options)
    elif isinstance(task, MatchingTask):
        value = list(task.answer)
    else:
        value = ""
    return UserAnswer(question_id=question.id, type=question.type, answer=value)


class AssessmentSession:
    """Sequential navigation over a fetched test, accumulating answers."""

    def __init__(
        self,
        questions: list[Question],
        answers: list[UserAnswer] | None = None,
        index: int = 0,
        state: SessionState = SessionState.ACTIVE,
        test_id: int = 0,
        test_result_id: int = 0,
    ) -> None:
        if not questions:
            raise ValueError("A quiz session needs at least one question")
        if answers is None:
            answers = [initial_answer(question) for question in questions]
        if len(answers) != len(questions):
            raise ValueError("Answers must match questions one to one")
        if not 0 <= index < len(questions):
            raise ValueError(f"Question index {index} is out of range")

        self.questions = list(questions)
        self.answers = list(answers)
        self.index = index
        self.state = SessionState(state)
        self.test_id = test_id
        self.test_result_id = test_result_id
        self.selection = MatchingSelection()

    # State

    @property
    def is_finished(self) -> bool:
        return self.state == SessionState.FINISHED

    @property
    def current_question(self) -> Question:
        return self.questions[self.index]

    @property
    def current_answer(self) -> UserAnswer:
        return self.answers[self.index]

    @property
    def can_prev(self) -> bool:
        return not self.is_finished and self.index > 0

    @property
    def can_next(self) -> bool:
        return not self.is_finished and self.index < len(self.questions) - 1

    @property
    def is_complete(self) -> bool:
        return all(answer.is_completed for answer in self.answers)

    def unanswered_indexes(self) -> list[int]:
        return [index for index, answer in enumerate(self.answers) if not answer.is_completed]

    def _ensure_active(self) -> None:
        if self.is_finished:
            raise SessionFinishedError("The quiz session is already finished")

    def _expect(self, question_type: QuestionType) -> UserAnswer:
        self._ensure_active()
        if self.current_question.type != question_type:
            raise ValueError(
                f"Question {self.index + 1} is not a {question_type.name.lower()} question"
            )
        return self.current_answer

    # Navigation

    def prev(self) -> bool:
        self._ensure_active()
        if not self.can_prev:
            return False
        self.index -= 1
        self.selection.reset()
        return True

    def next(self) -> bool:
        self._ensure_active()
        if not self.can_next:
            return False
        self.index += 1
        self.selection.reset()
        return True

    # Answer capture

    def select_option(self, option_index: int) -> None:
        """Single choice: exactly the chosen option becomes True."""
        answer = self._expect(QuestionType.SINGLE_CHOICE)
        _check_index(option_index, len(answer.answer))
        answer.answer = [index == option_index for index in range(len(answer.answer))]
        answer.is_completed = any(answer.answer)

    def toggle_option(self, option_index: int, checked: bool) -> None:
        """Multiple choice: options toggle independently."""
        answer = self._expect(QuestionType.MULTIPLE_CHOICE)
        _check_index(option_index, len(answer.answer))
        values = list(answer.answer)
        values[option_index] = bool(checked)
        answer.answer = values
        answer.is_completed = any(values)

    def click_left(self, row: int) -> MatchResult:
        answer = self._expect(QuestionType.MATCHING)
        return self._record_match(answer, self.selection.click_left(row, answer.answer))

    def click_right(self, row: int) -> MatchResult:
        answer = self._expect(QuestionType.MATCHING)
        return self._record_match(answer, self.selection.click_right(row, answer.answer))

    def _record_match(self, answer: UserAnswer, result: MatchResult) -> MatchResult:
        if not result.swapped:
            return result
        answer.answer = result.pairs
        # the right-hand row gave its definition away
        if result.right != result.left:
            answer.matched_rows.discard(result.right)
        answer.matched_rows.add(result.left)
        answer.is_completed = len(answer.matched_rows) == len(answer.answer)
        return result

    def fill_blank(self, text: str) -> None:
        """Fill in the blank: one word, surrounding whitespace ignored."""
        answer = self._expect(QuestionType.FILL_IN_BLANK)
        value = text.strip()
        answer.answer = value
        answer.is_completed = bool(value) and not any(char.isspace() for char in value)

    # Finish

    def collect_answers(self) -> list[UserAnswer]:
        """One answer per question, in question order."""
        return [copy.deepcopy(answer) for answer in self.answers]

    def finish(
        self,
        submit: Callable[[list[UserAnswer]], object] | None = None,
        confirmed: bool = False,
    ) -> FinishOutcome:
        """Hand the answers to ``submit`` and move to Finished.

        An attempt with unanswered questions needs ``confirmed=True``; without
        it the session stays as it is and the outcome asks for confirmation.
        If ``submit`` raises, the session stays active.
        """
        self._ensure_active()
        unanswered = self.unanswered_indexes()
        if unanswered and not confirmed:
            return FinishOutcome(FinishStatus.CONFIRMATION_REQUIRED, unanswered=unanswered)

        answers = self.collect_answers()
        if submit is not None:
            submit(answers)
        self.state = SessionState.FINISHED
        self.selection.reset()
        logger.info(
            f"Finished test result {self.test_result_id}: "
            f"{len(answers) - len(unanswered)}/{len(answers)} answered"
        )
        return FinishOutcome(FinishStatus.FINISHED, answers=answers, unanswered=unanswered)


def _check_index(index: int, size: int) -> None:
    if not 0 <= index < size:
        raise IndexError(f"Option {index} is out of range for {size} options")
