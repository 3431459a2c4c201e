"""Service layer for drafts and quiz sessions stored in the database."""
from typing import Any

from fastapi import HTTPException
from sqlalchemy.orm import Session as DBSession

from quizbuilder.models.collection import QuestionCollection, QuestionEntry
from quizbuilder.models.db.workspace import WorkspaceKind, WorkspaceRecord
from quizbuilder.models.questions import QuestionType
from quizbuilder.serialization import question_from_state, question_to_state
from quizbuilder.services.draft_service import TestDraft
from quizbuilder.services.matching_service import MatchingSelection
from quizbuilder.services.session_service import AssessmentSession, SessionState, UserAnswer

NOT_FOUND_DETAIL = {
    WorkspaceKind.DRAFT: "Draft not found",
    WorkspaceKind.ATTEMPT: "Quiz session not found",
}


# Records

def create_workspace(db: DBSession, kind: WorkspaceKind, state: dict[str, Any]) -> WorkspaceRecord:
    record = WorkspaceRecord(kind=kind.value)
    record.state = state
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def get_workspace(db: DBSession, workspace_id: str, kind: WorkspaceKind) -> WorkspaceRecord:
    record = db.get(WorkspaceRecord, workspace_id)
    if record is None or record.kind != kind.value:
        raise HTTPException(status_code=404, detail=NOT_FOUND_DETAIL[kind])
    return record


def save_workspace(db: DBSession, record: WorkspaceRecord, state: dict[str, Any]) -> None:
    record.state = state
    db.commit()


def delete_workspace(db: DBSession, record: WorkspaceRecord) -> None:
    db.delete(record)
    db.commit()


# Drafts

def _selection_from_state(data: dict[str, Any] | None) -> MatchingSelection:
    data = data or {}
    return MatchingSelection(data.get("selectedLeft"), data.get("selectedRight"))


def draft_to_state(draft: TestDraft) -> dict[str, Any]:
    return {
        "title": draft.title,
        "description": draft.description,
        "testId": draft.test_id,
        "questions": [
            {"key": entry.key, **question_to_state(entry.question)}
            for entry in draft.questions
        ],
        "activeKey": draft.questions.active_key,
        "questionsDirty": draft.questions.dirty,
        "metaDirty": draft.meta_dirty,
        "shouldValidate": draft.should_validate,
        "allowNavigation": draft.allow_navigation,
        "initialImageUrls": list(draft.initial_image_urls),
        "localImages": dict(draft.local_images),
        "selection": draft.selection.to_dict(),
    }


def draft_from_state(state: dict[str, Any]) -> TestDraft:
    questions = QuestionCollection(
        [QuestionEntry(item["key"], question_from_state(item)) for item in state["questions"]],
        active_key=state.get("activeKey"),
    )
    questions.dirty = bool(state.get("questionsDirty"))
    draft = TestDraft(
        title=state.get("title", ""),
        description=state.get("description", ""),
        questions=questions,
        test_id=state.get("testId", 0),
        initial_image_urls=list(state.get("initialImageUrls", [])),
        local_images=dict(state.get("localImages", {})),
        selection=_selection_from_state(state.get("selection")),
        should_validate=bool(state.get("shouldValidate")),
        allow_navigation=bool(state.get("allowNavigation")),
        meta_dirty=bool(state.get("metaDirty")),
    )
    if draft.should_validate:
        draft.revalidate()
    return draft


def draft_view(record: WorkspaceRecord, draft: TestDraft) -> dict[str, Any]:
    """Draft as returned by the API."""
    view = draft_to_state(draft)
    view.pop("localImages")
    view.update(
        {
            "id": record.id,
            "dirty": draft.dirty,
            "canLeave": draft.can_leave,
            "errors": draft.errors.to_dict() if draft.should_validate else None,
        }
    )
    return view


def load_draft(db: DBSession, draft_id: str) -> tuple[WorkspaceRecord, TestDraft]:
    record = get_workspace(db, draft_id, WorkspaceKind.DRAFT)
    return record, draft_from_state(record.state)


def save_draft(db: DBSession, record: WorkspaceRecord, draft: TestDraft) -> None:
    save_workspace(db, record, draft_to_state(draft))


# Quiz sessions

def _answer_to_state(answer: UserAnswer) -> dict[str, Any]:
    value = answer.answer
    if answer.type == QuestionType.MATCHING:
        value = [list(pair) for pair in value]
    return {
        "questionId": answer.question_id,
        "type": int(answer.type),
        "answer": value,
        "isCompleted": answer.is_completed,
        "matchedRows": sorted(answer.matched_rows),
    }


def _answer_from_state(data: dict[str, Any]) -> UserAnswer:
    question_type = QuestionType(data["type"])
    value = data["answer"]
    if question_type == QuestionType.MATCHING:
        value = [tuple(pair) for pair in value]
    return UserAnswer(
        question_id=data["questionId"],
        type=question_type,
        answer=value,
        is_completed=bool(data.get("isCompleted")),
        matched_rows=set(data.get("matchedRows", [])),
    )


def session_to_state(session: AssessmentSession) -> dict[str, Any]:
    return {
        "testId": session.test_id,
        "testResultId": session.test_result_id,
        "index": session.index,
        "state": session.state.value,
        "questions": [question_to_state(question) for question in session.questions],
        "answers": [_answer_to_state(answer) for answer in session.answers],
        "selection": session.selection.to_dict(),
    }


def session_from_state(state: dict[str, Any]) -> AssessmentSession:
    session = AssessmentSession(
        [question_from_state(item) for item in state["questions"]],
        answers=[_answer_from_state(item) for item in state["answers"]],
        index=state.get("index", 0),
        state=SessionState(state.get("state", SessionState.ACTIVE.value)),
        test_id=state.get("testId", 0),
        test_result_id=state.get("testResultId", 0),
    )
    session.selection = _selection_from_state(state.get("selection"))
    return session


def _learner_question(question_state: dict[str, Any]) -> dict[str, Any]:
    """Question without its correct answer."""
    view = {
        "id": question_state["id"],
        "type": question_state["type"],
        "text": question_state["text"],
        "imageUrl": question_state["imageUrl"],
    }
    if "options" in question_state["task"]:
        view["options"] = question_state["task"]["options"]
    return view


def session_view(record: WorkspaceRecord, session: AssessmentSession) -> dict[str, Any]:
    """Quiz session as returned by the API."""
    state = session_to_state(session)
    return {
        "id": record.id,
        "testId": session.test_id,
        "testResultId": session.test_result_id,
        "state": session.state.value,
        "index": session.index,
        "total": len(session.questions),
        "canPrev": session.can_prev,
        "canNext": session.can_next,
        "isComplete": session.is_complete,
        "unanswered": session.unanswered_indexes(),
        "question": _learner_question(state["questions"][session.index]),
        "answer": state["answers"][session.index],
        "selection": state["selection"],
    }


def load_session(db: DBSession, session_id: str) -> tuple[WorkspaceRecord, AssessmentSession]:
    record = get_workspace(db, session_id, WorkspaceKind.ATTEMPT)
    return record, session_from_state(record.state)


def save_session(db: DBSession, record: WorkspaceRecord, session: AssessmentSession) -> None:
    save_workspace(db, record, session_to_state(session))
