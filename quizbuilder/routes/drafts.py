"""Draft authoring endpoints."""
import logging
import uuid
from typing import Annotated, Callable

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from sqlalchemy.orm import Session as DbSession

from quizbuilder.config import LOCAL_IMAGE_PREFIX
from quizbuilder.database import get_db
from quizbuilder.dependencies import get_backend_client
from quizbuilder.models import (
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
from quizbuilder.models.db.workspace import WorkspaceKind
from quizbuilder.services.backend_client import BackendClient, BackendError
from quizbuilder.services.draft_service import TestDraft
from quizbuilder.services.store_service import (
    create_workspace,
    delete_workspace,
    draft_to_state,
    draft_view,
    load_draft,
    save_draft,
)
from quizbuilder.utils import draft_uploads_dir, save_upload_file, validate_id
from quizbuilder.utils.http_errors import backend_http_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/drafts", tags=["drafts"])

Db = Annotated[DbSession, Depends(get_db)]
Client = Annotated[BackendClient, Depends(get_backend_client)]


def _require_question(draft: TestDraft, key: str) -> None:
    if key not in draft.questions:
        raise HTTPException(status_code=404, detail="Question not found")


def _edit(db: DbSession, draft_id: str, action: Callable[[TestDraft], object]) -> dict[str, object]:
    """Load a draft, apply one command, store it and return its view."""
    draft_id = validate_id("draftId", draft_id)
    record, draft = load_draft(db, draft_id)
    try:
        action(draft)
    except (TypeError, ValueError, IndexError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    save_draft(db, record, draft)
    return draft_view(record, draft)


def _edit_question(
    db: DbSession,
    draft_id: str,
    key: str,
    action: Callable[[TestDraft], object],
) -> dict[str, object]:
    def apply(draft: TestDraft) -> object:
        _require_question(draft, key)
        return action(draft)

    return _edit(db, draft_id, apply)


@router.post("")
def create_draft(payload: DraftCreate, db: Db, client: Client) -> dict[str, object]:
    """Start a new test, or start editing a stored one."""
    if payload.testId is not None:
        try:
            draft = TestDraft.from_test(client.get_test(payload.testId))
        except BackendError as e:
            raise backend_http_error(e)
    else:
        draft = TestDraft(title=payload.title, description=payload.description)
    record = create_workspace(db, WorkspaceKind.DRAFT, draft_to_state(draft))
    logger.info(f"Created draft {record.id} (test {draft.test_id or 'new'})")
    return draft_view(record, draft)


@router.get("/{draft_id}")
def get_draft(draft_id: str, db: Db) -> dict[str, object]:
    record, draft = load_draft(db, validate_id("draftId", draft_id))
    return draft_view(record, draft)


@router.patch("/{draft_id}")
def update_draft_meta(draft_id: str, payload: DraftMetaUpdate, db: Db) -> dict[str, object]:
    def apply(draft: TestDraft) -> None:
        if payload.title is not None:
            draft.set_title(payload.title)
        if payload.description is not None:
            draft.set_description(payload.description)

    return _edit(db, draft_id, apply)


@router.delete("/{draft_id}")
def discard_draft(
    draft_id: str,
    db: Db,
    confirm: bool = Query(False),
) -> dict[str, object]:
    """Leave a draft. Unsaved changes need ``confirm=true``."""
    draft_id = validate_id("draftId", draft_id)
    record, draft = load_draft(db, draft_id)
    if not draft.discard(confirmed=confirm):
        raise HTTPException(status_code=409, detail="The draft has unsaved changes")
    delete_workspace(db, record)
    return {"status": "discarded", "id": draft_id}


# Questions

@router.post("/{draft_id}/questions")
def add_question(draft_id: str, db: Db) -> dict[str, object]:
    return _edit(db, draft_id, lambda draft: draft.add_question())


@router.post("/{draft_id}/questions/reorder")
def reorder_questions(draft_id: str, payload: ReorderRequest, db: Db) -> dict[str, object]:
    return _edit(
        db, draft_id, lambda draft: draft.reorder_questions(payload.movedKey, payload.targetKey)
    )


@router.delete("/{draft_id}/questions/{key}")
def remove_question(draft_id: str, key: str, db: Db) -> dict[str, object]:
    return _edit_question(db, draft_id, key, lambda draft: draft.remove_question(key))


@router.post("/{draft_id}/questions/{key}/activate")
def activate_question(draft_id: str, key: str, db: Db) -> dict[str, object]:
    return _edit_question(db, draft_id, key, lambda draft: draft.set_active(key))


@router.patch("/{draft_id}/questions/{key}")
def update_question(draft_id: str, key: str, payload: QuestionUpdate, db: Db) -> dict[str, object]:
    changes: dict[str, object] = {}
    if payload.text is not None:
        changes["text"] = payload.text
    if payload.clearImage:
        changes["image_url"] = None
    return _edit_question(db, draft_id, key, lambda draft: draft.update_question(key, **changes))


@router.put("/{draft_id}/questions/{key}/type")
def set_question_type(
    draft_id: str, key: str, payload: QuestionTypeUpdate, db: Db
) -> dict[str, object]:
    return _edit_question(
        db, draft_id, key, lambda draft: draft.set_question_type(key, payload.type)
    )


@router.patch("/{draft_id}/questions/{key}/task")
def mutate_task(draft_id: str, key: str, payload: TaskUpdate, db: Db) -> dict[str, object]:
    partial = payload.model_dump(exclude_none=True)
    return _edit_question(db, draft_id, key, lambda draft: draft.mutate_task(key, **partial))


@router.post("/{draft_id}/questions/{key}/options")
def add_answer_option(draft_id: str, key: str, db: Db) -> dict[str, object]:
    return _edit_question(db, draft_id, key, lambda draft: draft.add_answer_option(key))


@router.put("/{draft_id}/questions/{key}/options/{index}")
def update_answer_option(
    draft_id: str, key: str, index: int, payload: AnswerOptionUpdate, db: Db
) -> dict[str, object]:
    return _edit_question(
        db,
        draft_id,
        key,
        lambda draft: draft.update_answer_option(key, index, payload.value, payload.side),
    )


@router.delete("/{draft_id}/questions/{key}/options/{index}")
def remove_answer_option(draft_id: str, key: str, index: int, db: Db) -> dict[str, object]:
    return _edit_question(db, draft_id, key, lambda draft: draft.remove_answer_option(key, index))


@router.put("/{draft_id}/questions/{key}/answers/{index}")
def toggle_answer(
    draft_id: str, key: str, index: int, payload: AnswerToggle, db: Db
) -> dict[str, object]:
    return _edit_question(
        db, draft_id, key, lambda draft: draft.toggle_answer(key, index, payload.checked)
    )


@router.post("/{draft_id}/questions/{key}/image")
def attach_image(
    draft_id: str,
    key: str,
    db: Db,
    file: UploadFile = File(...),
) -> dict[str, object]:
    """Keep an image locally until the draft is submitted."""
    draft_id = validate_id("draftId", draft_id)
    record, draft = load_draft(db, draft_id)
    _require_question(draft, key)
    path = save_upload_file(file, draft_uploads_dir(draft_id))
    draft.attach_local_image(key, f"{LOCAL_IMAGE_PREFIX}{uuid.uuid4().hex}", str(path))
    save_draft(db, record, draft)
    return draft_view(record, draft)


@router.post("/{draft_id}/matching")
def click_matching(draft_id: str, payload: MatchingClick, db: Db) -> dict[str, object]:
    """Select a term or definition of the active matching question."""

    def apply(draft: TestDraft) -> object:
        if payload.side == "left":
            return draft.click_left(payload.index)
        return draft.click_right(payload.index)

    return _edit(db, draft_id, apply)


# Validation and submission

@router.post("/{draft_id}/validate")
def validate_draft(draft_id: str, db: Db) -> dict[str, object]:
    return _edit(db, draft_id, lambda draft: draft.validate())


@router.post("/{draft_id}/submit")
def submit_draft(draft_id: str, db: Db, client: Client) -> dict[str, object]:
    """Validate, upload pending images and create or update the test."""
    draft_id = validate_id("draftId", draft_id)
    record, draft = load_draft(db, draft_id)
    try:
        outcome = draft.submit(client)
    except BackendError as e:
        save_draft(db, record, draft)
        raise backend_http_error(e)
    save_draft(db, record, draft)
    if not outcome.ok:
        raise HTTPException(status_code=400, detail=outcome.errors.to_dict())
    return {
        "draft": draft_view(record, draft),
        "submission": outcome.submission.model_dump(),
    }


@router.delete("/{draft_id}/test")
def delete_stored_test(draft_id: str, db: Db, client: Client) -> dict[str, object]:
    draft_id = validate_id("draftId", draft_id)
    record, draft = load_draft(db, draft_id)
    try:
        draft.delete_test(client)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except BackendError as e:
        raise backend_http_error(e)
    save_draft(db, record, draft)
    return draft_view(record, draft)
