import json

import pytest
from fastapi import HTTPException

from quizbuilder.database import SessionLocal, init_db
from quizbuilder.models.db.workspace import WorkspaceKind
from quizbuilder.models.questions import QuestionType
from quizbuilder.serialization import questions_from_test
from quizbuilder.services.draft_service import TestDraft
from quizbuilder.services.session_service import AssessmentSession
from quizbuilder.services.store_service import (
    create_workspace,
    draft_from_state,
    draft_to_state,
    get_workspace,
    load_draft,
    save_draft,
    session_from_state,
    session_to_state,
)


@pytest.fixture
def db():
    init_db()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def test_draft_state_survives_storage(db) -> None:
    draft = TestDraft(title="Quiz")
    key = draft.questions.active_key
    draft.set_question_type(key, QuestionType.MATCHING)
    draft.click_left(1)
    draft.validate()

    record = create_workspace(db, WorkspaceKind.DRAFT, draft_to_state(draft))
    _, loaded = load_draft(db, record.id)

    assert loaded.questions.keys() == [key]
    assert loaded.questions[key].task.answer == [("", ""), ("", "")]
    assert loaded.selection.selected_left == 1
    assert loaded.dirty
    assert loaded.should_validate
    assert loaded.question_errors[key].answer_pairs is not None


def test_save_draft_updates_record(db) -> None:
    draft = TestDraft()
    record = create_workspace(db, WorkspaceKind.DRAFT, draft_to_state(draft))
    draft.set_title("Renamed")
    save_draft(db, record, draft)
    assert json.loads(get_workspace(db, record.id, WorkspaceKind.DRAFT).state_json)["title"] == "Renamed"


def test_wrong_kind_is_not_found(db) -> None:
    record = create_workspace(db, WorkspaceKind.DRAFT, draft_to_state(TestDraft()))
    with pytest.raises(HTTPException) as exc_info:
        get_workspace(db, record.id, WorkspaceKind.ATTEMPT)
    assert exc_info.value.status_code == 404


def test_session_state_keeps_matching_progress(fetched_test) -> None:
    session = AssessmentSession(questions_from_test(fetched_test), test_id=7, test_result_id=9)
    session.next()
    session.next()
    session.click_left(0)
    session.click_right(0)

    restored = session_from_state(json.loads(json.dumps(session_to_state(session))))
    assert restored.index == 2
    assert restored.current_answer.matched_rows == {0}
    assert restored.current_answer.answer == [("Spain", "Madrid"), ("Austria", "Vienna")]
    assert restored.test_result_id == 9


def test_draft_from_state_keeps_active_key() -> None:
    draft = TestDraft()
    second = draft.add_question()
    restored = draft_from_state(draft_to_state(draft))
    assert restored.questions.active_key == second
