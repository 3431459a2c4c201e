"""
Ordered, keyed collection of the questions of one draft.

Order lives in an explicit list of entries; it is the display and
serialization order. Capacity violations are silent no-ops, so every command
reports whether it changed anything instead of raising.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Iterable, Iterator

from quizbuilder.config import ANSWER_OPTION_MAX, ANSWER_OPTION_MIN, QUESTION_MAX, QUESTION_MIN
from quizbuilder.models.questions import (
    CHOICE_TYPES,
    FillInBlankTask,
    MatchingTask,
    Question,
    QuestionType,
    SingleChoiceTask,
    create_default_question,
    default_task,
    new_question_key,
    task_shape_error,
)

logger = logging.getLogger(__name__)

_UNSET = object()


def _is_str_list(value: object) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


def _check_task_fields(question_type: QuestionType, partial: dict[str, object]) -> None:
    """Reject field values whose type does not fit the variant's payload."""
    for name, value in partial.items():
        if question_type in CHOICE_TYPES:
            if name == "options" and not _is_str_list(value):
                raise TypeError("options must be a list of strings")
            if name == "answer" and not (
                isinstance(value, list) and all(isinstance(item, bool) for item in value)
            ):
                raise TypeError("answer must be a list of booleans")
        elif question_type == QuestionType.MATCHING:
            if name == "answer" and not (
                isinstance(value, (list, tuple))
                and all(
                    isinstance(pair, (list, tuple)) and len(pair) == 2 and _is_str_list(list(pair))
                    for pair in value
                )
            ):
                raise TypeError("answer must be a list of term/definition pairs")
        elif name == "answer" and not isinstance(value, str):
            raise TypeError("answer must be a string")


@dataclass
class QuestionEntry:
    """A question together with its authoring key."""

    key: str
    question: Question


class QuestionCollection:
    """Questions of a draft, between QUESTION_MIN and QUESTION_MAX of them."""

    def __init__(
        self,
        entries: Iterable[QuestionEntry] | None = None,
        active_key: str | None = None,
    ) -> None:
        if entries is None:
            entries = [QuestionEntry(new_question_key(), create_default_question())]
        self._entries: list[QuestionEntry] = list(entries)

        if len(self._entries) < QUESTION_MIN:
            raise ValueError("A test needs at least one question")
        if len(self._entries) > QUESTION_MAX:
            raise ValueError(f"A test cannot have more than {QUESTION_MAX} questions")
        keys = self.keys()
        if len(set(keys)) != len(keys):
            raise ValueError("Duplicate question keys")

        self.active_key: str = active_key if active_key in keys else keys[0]
        self.dirty = False

    @classmethod
    def from_questions(cls, questions: Iterable[Question]) -> QuestionCollection:
        """Wrap fetched questions, assigning fresh authoring keys."""
        entries = [QuestionEntry(new_question_key(), question) for question in questions]
        return cls(entries)

    # Read access

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[QuestionEntry]:
        return iter(list(self._entries))

    def __contains__(self, key: object) -> bool:
        return self._index_of(key) is not None

    def __getitem__(self, key: str) -> Question:
        question = self.get(key)
        if question is None:
            raise KeyError(key)
        return question

    def keys(self) -> list[str]:
        return [entry.key for entry in self._entries]

    def questions(self) -> list[Question]:
        return [entry.question for entry in self._entries]

    def get(self, key: str) -> Question | None:
        index = self._index_of(key)
        if index is None:
            return None
        return self._entries[index].question

    @property
    def active(self) -> Question:
        return self[self.active_key]

    def _index_of(self, key: object) -> int | None:
        for index, entry in enumerate(self._entries):
            if entry.key == key:
                return index
        return None

    # Structure

    def add(self) -> str | None:
        """Append a default single-choice question and focus it."""
        if len(self._entries) >= QUESTION_MAX:
            return None
        key = new_question_key()
        self._entries.append(QuestionEntry(key, create_default_question()))
        self.active_key = key
        self.dirty = True
        return key

    def remove(self, key: str) -> bool:
        """Delete a question; focus moves to the first remaining one."""
        if len(self._entries) <= QUESTION_MIN:
            return False
        index = self._index_of(key)
        if index is None:
            return False
        self._entries.pop(index)
        self.active_key = self._entries[0].key
        self.dirty = True
        return True

    def reorder(self, moved_key: str, target_key: str) -> bool:
        """Move ``moved_key`` to just before ``target_key``.

        The dragged question always becomes active, even when nothing moves.
        """
        moved_index = self._index_of(moved_key)
        if moved_index is not None:
            self.active_key = moved_key
        target_index = self._index_of(target_key)
        if moved_index is None or target_index is None or moved_key == target_key:
            return False

        entry = self._entries.pop(moved_index)
        target_index = self._index_of(target_key)
        self._entries.insert(target_index, entry)
        self.dirty = True
        return True

    def set_active(self, key: str) -> bool:
        if key not in self:
            return False
        self.active_key = key
        return True

    # Question content

    def set_type(self, key: str, new_type: QuestionType | int) -> bool:
        """Switch a question to another variant.

        Only a real change of variant installs the new default payload and
        drops what the author entered; re-selecting the same type is a no-op.
        """
        question = self.get(key)
        if question is None:
            return False
        new_type = QuestionType(new_type)
        if question.type == new_type:
            return False
        logger.debug(f"Question {key} type {question.type.name} -> {new_type.name}")
        question.task = default_task(new_type)
        self.dirty = True
        return True

    def update(self, key: str, *, text: str | None = None, image_url: object = _UNSET) -> bool:
        """Update prompt text and/or image reference (``None`` clears the image)."""
        question = self.get(key)
        if question is None:
            return False
        changed = False
        if text is not None and text != question.text:
            question.text = text
            changed = True
        if image_url is not _UNSET and image_url != question.image_url:
            question.image_url = image_url
            changed = True
        if changed:
            self.dirty = True
        return changed

    def mutate_task(self, key: str, **partial: object) -> bool:
        """Shallow-merge fields into the task payload; the type never changes.

        Raises:
            TypeError: if a field does not belong to the question's variant
                or has the wrong type
            ValueError: if the merged payload breaks the option/answer
                structure (counts, lengths, correct answers)
        """
        question = self.get(key)
        if question is None:
            return False
        if not partial:
            return False
        _check_task_fields(question.type, partial)
        task = replace(question.task, **partial)
        error = task_shape_error(task)
        if error:
            raise ValueError(error)
        question.task = task
        self.dirty = True
        return True

    # Answer options

    def add_answer_option(self, key: str) -> bool:
        """Append an empty option (choice types) or pair (matching)."""
        question = self.get(key)
        if question is None:
            return False
        task = question.task
        if question.type in CHOICE_TYPES:
            if len(task.options) >= ANSWER_OPTION_MAX - 1:
                return False
            question.task = replace(
                task, options=[*task.options, ""], answer=[*task.answer, False]
            )
        elif isinstance(task, MatchingTask):
            if len(task.answer) >= ANSWER_OPTION_MAX:
                return False
            question.task = replace(task, answer=[*task.answer, ("", "")])
        else:
            return False
        self.dirty = True
        return True

    def update_answer_option(
        self,
        key: str,
        index: int,
        value: str,
        side: int | None = None,
    ) -> bool:
        """Edit one option text, one side of a pair, or the fill-in answer.

        ``side`` selects the term (0) or definition (1) of a matching pair.
        """
        question = self.get(key)
        if question is None:
            return False
        task = question.task

        if question.type in CHOICE_TYPES:
            if not 0 <= index < len(task.options):
                return False
            options = list(task.options)
            options[index] = value
            question.task = replace(task, options=options)
        elif isinstance(task, MatchingTask):
            if side not in (0, 1) or not 0 <= index < len(task.answer):
                return False
            pairs = list(task.answer)
            pair = list(pairs[index])
            pair[side] = value
            pairs[index] = (pair[0], pair[1])
            question.task = replace(task, answer=pairs)
        elif isinstance(task, FillInBlankTask):
            question.task = replace(task, answer=value)
        else:
            return False
        self.dirty = True
        return True

    def remove_answer_option(self, key: str, index: int) -> bool:
        """Remove an option or pair, never going below ANSWER_OPTION_MIN."""
        question = self.get(key)
        if question is None:
            return False
        task = question.task

        if question.type in CHOICE_TYPES:
            if len(task.options) <= ANSWER_OPTION_MIN or not 0 <= index < len(task.options):
                return False
            options = [option for i, option in enumerate(task.options) if i != index]
            answer = [value for i, value in enumerate(task.answer) if i != index]
            if not any(answer):
                answer[0] = True
            question.task = replace(task, options=options, answer=answer)
        elif isinstance(task, MatchingTask):
            if len(task.answer) <= ANSWER_OPTION_MIN or not 0 <= index < len(task.answer):
                return False
            question.task = replace(
                task, answer=[pair for i, pair in enumerate(task.answer) if i != index]
            )
        else:
            return False
        self.dirty = True
        return True

    def toggle_answer(self, key: str, index: int, checked: bool) -> bool:
        """Mark or unmark a choice option as correct.

        Single choice behaves like a radio group: checking selects exclusively,
        unchecking is ignored. Multiple choice keeps at least one option marked.
        """
        question = self.get(key)
        if question is None or question.type not in CHOICE_TYPES:
            return False
        task = question.task
        if not 0 <= index < len(task.answer):
            return False

        if isinstance(task, SingleChoiceTask):
            if not checked:
                return False
            answer = [position == index for position in range(len(task.answer))]
        else:
            answer = list(task.answer)
            if checked:
                answer[index] = True
            elif sum(answer) > 1:
                answer[index] = False
            else:
                return False

        if answer == task.answer:
            return False
        question.task = replace(task, answer=answer)
        self.dirty = True
        return True
