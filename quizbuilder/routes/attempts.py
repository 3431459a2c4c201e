"""Quiz-taking endpoints."""
import logging
from typing import Annotated, Callable

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session as DbSession

from quizbuilder.database import get_db
from quizbuilder.dependencies import get_backend_client
from quizbuilder.models import (
    AttemptFinishRequest,
    AttemptStart,
    BlankFill,
    MatchingClick,
    OptionSelect,
    OptionToggle,
)
from quizbuilder.models.db.workspace import WorkspaceKind
from quizbuilder.serialization import questions_from_test, serialize_answer_results
from quizbuilder.services.backend_client import BackendClient, BackendError
from quizbuilder.services.session_service import (
    AssessmentSession,
    FinishStatus,
    SessionFinishedError,
    UserAnswer,
)
from quizbuilder.services.store_service import (
    create_workspace,
    delete_workspace,
    load_session,
    save_session,
    session_to_state,
    session_view,
)
from quizbuilder.utils import validate_id
from quizbuilder.utils.http_errors import backend_http_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/attempts", tags=["attempts"])

Db = Annotated[DbSession, Depends(get_db)]
Client = Annotated[BackendClient, Depends(get_backend_client)]


def _act(
    db: DbSession,
    attempt_id: str,
    action: Callable[[AssessmentSession], object],
) -> dict[str, object]:
    """Load a session, apply one learner action, store it and return its view."""
    attempt_id = validate_id("attemptId", attempt_id)
    record, session = load_session(db, attempt_id)
    try:
        action(session)
    except SessionFinishedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except (ValueError, IndexError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    save_session(db, record, session)
    return session_view(record, session)


@router.post("")
def start_attempt(payload: AttemptStart, db: Db, client: Client) -> dict[str, object]:
    """Fetch a test for passing and open a session on it.

    The test result must be an unfinished attempt at that same test.
    """
    try:
        test = client.get_test_for_passing(payload.testId)
        result = client.get_test_result(payload.testResultId)
    except BackendError as e:
        raise backend_http_error(e)

    if result.testId != test.id:
        raise HTTPException(
            status_code=400,
            detail=f"Test result {result.id} does not belong to test {test.id}",
        )
    if result.endedAt is not None:
        raise HTTPException(
            status_code=409, detail=f"Test result {result.id} is already finished"
        )

    questions = questions_from_test(test)
    if not questions:
        raise HTTPException(status_code=400, detail="The test has no questions")
    session = AssessmentSession(
        questions, test_id=test.id, test_result_id=payload.testResultId
    )
    record = create_workspace(db, WorkspaceKind.ATTEMPT, session_to_state(session))
    logger.info(f"Started attempt {record.id} on test {test.id}")
    return session_view(record, session)


@router.get("/{attempt_id}")
def get_attempt(attempt_id: str, db: Db) -> dict[str, object]:
    record, session = load_session(db, validate_id("attemptId", attempt_id))
    return session_view(record, session)


@router.delete("/{attempt_id}")
def delete_attempt(attempt_id: str, db: Db) -> dict[str, str]:
    attempt_id = validate_id("attemptId", attempt_id)
    record, _ = load_session(db, attempt_id)
    delete_workspace(db, record)
    return {"status": "deleted", "id": attempt_id}


@router.post("/{attempt_id}/prev")
def previous_question(attempt_id: str, db: Db) -> dict[str, object]:
    return _act(db, attempt_id, lambda session: session.prev())


@router.post("/{attempt_id}/next")
def next_question(attempt_id: str, db: Db) -> dict[str, object]:
    return _act(db, attempt_id, lambda session: session.next())


@router.post("/{attempt_id}/select")
def select_option(attempt_id: str, payload: OptionSelect, db: Db) -> dict[str, object]:
    return _act(db, attempt_id, lambda session: session.select_option(payload.index))


@router.post("/{attempt_id}/toggle")
def toggle_option(attempt_id: str, payload: OptionToggle, db: Db) -> dict[str, object]:
    return _act(
        db, attempt_id, lambda session: session.toggle_option(payload.index, payload.checked)
    )


@router.post("/{attempt_id}/matching")
def click_matching(attempt_id: str, payload: MatchingClick, db: Db) -> dict[str, object]:
    def apply(session: AssessmentSession) -> object:
        if payload.side == "left":
            return session.click_left(payload.index)
        return session.click_right(payload.index)

    return _act(db, attempt_id, apply)


@router.post("/{attempt_id}/fill")
def fill_blank(attempt_id: str, payload: BlankFill, db: Db) -> dict[str, object]:
    return _act(db, attempt_id, lambda session: session.fill_blank(payload.text))


@router.post("/{attempt_id}/finish")
def finish_attempt(
    attempt_id: str,
    payload: AttemptFinishRequest,
    db: Db,
    client: Client,
) -> dict[str, object]:
    """Hand the answers to grading.

    With unanswered questions and no confirmation, nothing is sent and the
    response lists the unanswered question indexes.
    """
    attempt_id = validate_id("attemptId", attempt_id)
    record, session = load_session(db, attempt_id)

    def submit(answers: list[UserAnswer]) -> None:
        client.finish_test(session.test_result_id, serialize_answer_results(answers))

    try:
        outcome = session.finish(submit, confirmed=payload.confirmed)
    except SessionFinishedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except BackendError as e:
        raise backend_http_error(e)

    if outcome.status == FinishStatus.FINISHED:
        save_session(db, record, session)
    return {
        "status": outcome.status.value,
        "unanswered": outcome.unanswered,
        "attempt": session_view(record, session),
    }
