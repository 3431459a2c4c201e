"""
A test being authored.

Wraps the question collection with the test metadata and tracks unsaved
changes. Local images are uploaded only when the draft is submitted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from quizbuilder.config import LOCAL_IMAGE_PREFIX
from quizbuilder.models.collection import QuestionCollection
from quizbuilder.models.questions import MatchingTask, QuestionType
from quizbuilder.models.submissions import FetchedTest, TestSubmission
from quizbuilder.serialization import questions_from_test, serialize_test_submission
from quizbuilder.services.backend_client import BackendClient, BackendError, ImageUploadError
from quizbuilder.services.matching_service import MatchingSelection, MatchResult
from quizbuilder.services.validation_service import (
    DraftErrors,
    QuestionErrors,
    validate_description,
    validate_draft,
    validate_question,
    validate_title,
)
from quizbuilder.utils.file_utils import remove_files

logger = logging.getLogger(__name__)


def is_local_image(url: str | None) -> bool:
    return bool(url) and url.startswith(LOCAL_IMAGE_PREFIX)


@dataclass
class SubmitOutcome:
    errors: DraftErrors
    submission: TestSubmission | None = None
    response: object = None

    @property
    def ok(self) -> bool:
        return self.submission is not None


@dataclass
class TestDraft:
    """Editing state of one test, new (``test_id == 0``) or existing."""

    __test__ = False

    title: str = ""
    description: str = ""
    questions: QuestionCollection = field(default_factory=QuestionCollection)
    test_id: int = 0
    # hosted images the test had when editing started
    initial_image_urls: list[str] = field(default_factory=list)
    # local reference -> file path, for images not uploaded yet
    local_images: dict[str, str] = field(default_factory=dict)
    selection: MatchingSelection = field(default_factory=MatchingSelection)
    should_validate: bool = False
    allow_navigation: bool = False
    meta_dirty: bool = False
    title_error: str | None = None
    description_error: str | None = None
    question_errors: dict[str, QuestionErrors] = field(default_factory=dict)

    @classmethod
    def from_test(cls, test: FetchedTest) -> TestDraft:
        """Start editing a stored test."""
        questions = questions_from_test(test)
        return cls(
            title=test.title,
            description=test.description or "",
            questions=QuestionCollection.from_questions(questions),
            test_id=test.id,
            initial_image_urls=[q.image_url for q in questions if q.image_url],
        )

    # State

    @property
    def dirty(self) -> bool:
        return self.meta_dirty or self.questions.dirty

    @property
    def can_leave(self) -> bool:
        return not self.dirty or self.allow_navigation

    @property
    def errors(self) -> DraftErrors:
        return DraftErrors(
            title=self.title_error,
            description=self.description_error,
            questions=dict(self.question_errors),
        )

    def mark_clean(self) -> None:
        self.meta_dirty = False
        self.questions.dirty = False

    def _after_edit(self, changed: bool, key: str | None = None, active_before: str | None = None) -> None:
        if active_before is not None and self.questions.active_key != active_before:
            self.selection.reset()
        if not changed:
            return
        self.allow_navigation = False
        if not self.should_validate:
            return
        if key is None:
            self.revalidate()
            return
        question = self.questions.get(key)
        errors = validate_question(question) if question is not None else None
        if errors:
            self.question_errors[key] = errors
        else:
            self.question_errors.pop(key, None)

    # Metadata

    def set_title(self, title: str) -> bool:
        if title == self.title:
            return False
        self.title = title
        self.meta_dirty = True
        if self.should_validate:
            self.title_error = validate_title(title)
        self.allow_navigation = False
        return True

    def set_description(self, description: str) -> bool:
        if description == self.description:
            return False
        self.description = description
        self.meta_dirty = True
        if self.should_validate:
            self.description_error = validate_description(description)
        self.allow_navigation = False
        return True

    # Questions

    def add_question(self) -> str | None:
        active_before = self.questions.active_key
        key = self.questions.add()
        self._after_edit(key is not None, key, active_before)
        return key

    def remove_question(self, key: str) -> bool:
        active_before = self.questions.active_key
        changed = self.questions.remove(key)
        if changed:
            self.question_errors.pop(key, None)
        self._after_edit(changed, None, active_before)
        return changed

    def reorder_questions(self, moved_key: str, target_key: str) -> bool:
        active_before = self.questions.active_key
        changed = self.questions.reorder(moved_key, target_key)
        self._after_edit(changed, moved_key, active_before)
        return changed

    def set_active(self, key: str) -> bool:
        active_before = self.questions.active_key
        changed = self.questions.set_active(key)
        self._after_edit(False, None, active_before)
        return changed

    def set_question_type(self, key: str, question_type: QuestionType | int) -> bool:
        changed = self.questions.set_type(key, question_type)
        if changed and key == self.questions.active_key:
            self.selection.reset()
        self._after_edit(changed, key)
        return changed

    def update_question(self, key: str, **changes: object) -> bool:
        """Change prompt text and/or image reference."""
        changed = self.questions.update(key, **changes)
        self._after_edit(changed, key)
        return changed

    def mutate_task(self, key: str, **partial: object) -> bool:
        changed = self.questions.mutate_task(key, **partial)
        self._after_edit(changed, key)
        return changed

    def add_answer_option(self, key: str) -> bool:
        changed = self.questions.add_answer_option(key)
        self._after_edit(changed, key)
        return changed

    def update_answer_option(self, key: str, index: int, value: str, side: int | None = None) -> bool:
        changed = self.questions.update_answer_option(key, index, value, side)
        self._after_edit(changed, key)
        return changed

    def remove_answer_option(self, key: str, index: int) -> bool:
        changed = self.questions.remove_answer_option(key, index)
        if changed and key == self.questions.active_key:
            self.selection.reset()
        self._after_edit(changed, key)
        return changed

    def toggle_answer(self, key: str, index: int, checked: bool) -> bool:
        changed = self.questions.toggle_answer(key, index, checked)
        self._after_edit(changed, key)
        return changed

    # Matching pairs of the active question

    def _active_pairs(self) -> list[tuple[str, str]]:
        task = self.questions.active.task
        if not isinstance(task, MatchingTask):
            raise ValueError("The active question is not a matching question")
        return task.answer

    def click_left(self, index: int) -> MatchResult:
        result = self.selection.click_left(index, self._active_pairs())
        return self._apply_match(result)

    def click_right(self, index: int) -> MatchResult:
        result = self.selection.click_right(index, self._active_pairs())
        return self._apply_match(result)

    def _apply_match(self, result: MatchResult) -> MatchResult:
        if result.swapped:
            key = self.questions.active_key
            changed = self.questions.mutate_task(key, answer=result.pairs)
            self._after_edit(changed, key)
        return result

    # Images

    def attach_local_image(self, key: str, reference: str, path: str) -> bool:
        """Point a question at a local file that is uploaded on submit."""
        if key not in self.questions:
            return False
        self.local_images[reference] = path
        return self.update_question(key, image_url=reference)

    def referenced_local_images(self) -> list[str]:
        refs = [q.image_url for q in self.questions.questions() if is_local_image(q.image_url)]
        return list(dict.fromkeys(refs))

    # Validation and submission

    def revalidate(self) -> DraftErrors:
        errors = validate_draft(self)
        self.title_error = errors.title
        self.description_error = errors.description
        self.question_errors = dict(errors.questions)
        return errors

    def validate(self) -> DraftErrors:
        """Full validation; from now on every edit re-validates."""
        self.should_validate = True
        return self.revalidate()

    def build_submission(self, image_urls: dict[str, str] | None = None) -> TestSubmission:
        return serialize_test_submission(
            self.title, self.description, self.questions.questions(), image_urls
        )

    def submit(self, client: BackendClient) -> SubmitOutcome:
        """Validate and persist the draft.

        Returns the outcome with the errors when validation fails; nothing is
        uploaded or sent then. Collaborator failures propagate as
        ``BackendError`` and leave the draft as it was.
        """
        errors = self.validate()
        if errors:
            logger.info(f"Draft '{self.title}' has errors in {len(errors.questions)} questions")
            return SubmitOutcome(errors)

        uploaded = self._upload_local_images(client)
        submission = self.build_submission(uploaded)
        try:
            if self.test_id:
                response = client.update_test(self.test_id, submission)
            else:
                response = client.create_test(submission)
        except BackendError:
            _delete_hosted_images(client, uploaded.values())
            raise

        current_urls = {item.imageUrl for item in submission.questions if item.imageUrl}
        _delete_hosted_images(
            client, [url for url in self.initial_image_urls if url not in current_urls]
        )

        for question in self.questions.questions():
            if question.image_url in uploaded:
                question.image_url = uploaded[question.image_url]
        remove_files(self.local_images.values())
        self.local_images = {}
        self.initial_image_urls = sorted(current_urls)
        self.mark_clean()
        self.allow_navigation = True
        return SubmitOutcome(errors, submission, response)

    def _upload_local_images(self, client: BackendClient) -> dict[str, str]:
        uploaded: dict[str, str] = {}
        for reference in self.referenced_local_images():
            path = self.local_images.get(reference)
            try:
                if path is None:
                    raise ImageUploadError()
                uploaded[reference] = client.upload_image(path)
            except ImageUploadError:
                _delete_hosted_images(client, uploaded.values())
                raise
        return uploaded

    def delete_test(self, client: BackendClient) -> None:
        if not self.test_id:
            raise ValueError("Only a stored test can be deleted")
        client.delete_test(self.test_id)
        self.allow_navigation = True

    def discard(self, confirmed: bool = False) -> bool:
        """Leave the draft; a dirty draft needs ``confirmed=True``.

        Returns False (draft untouched) when confirmation is missing.
        """
        if not self.can_leave and not confirmed:
            return False
        remove_files(self.local_images.values())
        self.local_images = {}
        return True


def _delete_hosted_images(client: BackendClient, urls: Iterable[str]) -> None:
    for url in urls:
        try:
            client.delete_image(url)
        except BackendError as e:
            logger.warning(f"Could not delete hosted image {url}: {e.message}")
