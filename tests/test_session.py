import pytest

from quizbuilder.serialization import questions_from_test
from quizbuilder.services.session_service import (
    AssessmentSession,
    FinishStatus,
    SessionFinishedError,
    SessionState,
)


@pytest.fixture
def session(fetched_test) -> AssessmentSession:
    return AssessmentSession(questions_from_test(fetched_test), test_id=7, test_result_id=55)


def _answer_all(session: AssessmentSession) -> None:
    session.select_option(0)
    session.next()
    session.toggle_option(2, True)
    session.next()
    session.click_left(0)
    session.click_right(0)
    session.click_right(1)
    session.click_left(1)
    session.next()
    session.fill_blank("  Berlin ")


def test_navigation_bounds(session: AssessmentSession) -> None:
    assert not session.can_prev
    assert not session.prev()
    assert session.index == 0
    for expected in (1, 2, 3):
        assert session.next()
        assert session.index == expected
    assert not session.can_next
    assert not session.next()
    assert session.index == 3


def test_single_choice_is_one_hot(session: AssessmentSession) -> None:
    session.select_option(1)
    session.select_option(0)
    assert session.current_answer.answer == [True, False]
    assert session.current_answer.is_completed


def test_answer_capture_checks_question_type(session: AssessmentSession) -> None:
    with pytest.raises(ValueError):
        session.fill_blank("Paris")
    with pytest.raises(IndexError):
        session.select_option(5)


def test_multiple_choice_toggles_independently(session: AssessmentSession) -> None:
    session.next()
    session.toggle_option(0, True)
    session.toggle_option(2, True)
    session.toggle_option(0, False)
    assert session.current_answer.answer == [False, False, True]
    assert session.current_answer.is_completed
    session.toggle_option(2, False)
    assert not session.current_answer.is_completed


def test_matching_rows_confirm_and_complete(session: AssessmentSession) -> None:
    session.next()
    session.next()
    result = session.click_left(0)
    assert not result.swapped
    session.click_right(1)
    answer = session.current_answer
    assert answer.answer == [("Spain", "Vienna"), ("Austria", "Madrid")]
    assert answer.matched_rows == {0}
    assert not answer.is_completed

    session.click_right(0)
    session.click_left(1)
    assert answer.answer == [("Spain", "Madrid"), ("Austria", "Vienna")]
    assert answer.matched_rows == {1}

    session.click_left(0)
    session.click_right(1)
    assert answer.matched_rows == {0}


def test_matching_same_row_confirms_it(session: AssessmentSession) -> None:
    session.next()
    session.next()
    session.click_left(0)
    session.click_right(0)
    session.click_left(1)
    session.click_right(1)
    assert session.current_answer.is_completed
    assert session.current_answer.answer == [("Spain", "Madrid"), ("Austria", "Vienna")]


def test_navigation_resets_matching_selection(session: AssessmentSession) -> None:
    session.next()
    session.next()
    session.click_left(1)
    session.prev()
    assert session.selection.selected_left is None


@pytest.mark.parametrize(
    ("text", "completed"),
    [("Berlin", True), ("  Berlin  ", True), ("", False), ("   ", False), ("New York", False)],
)
def test_fill_in_blank_completion(session: AssessmentSession, text: str, completed: bool) -> None:
    for _ in range(3):
        session.next()
    session.fill_blank(text)
    assert session.current_answer.answer == text.strip()
    assert session.current_answer.is_completed is completed


def test_incomplete_finish_requires_confirmation(session: AssessmentSession) -> None:
    submitted = []
    outcome = session.finish(submitted.append)
    assert outcome.status == FinishStatus.CONFIRMATION_REQUIRED
    assert outcome.unanswered == [0, 1, 2, 3]
    assert submitted == []
    assert session.state == SessionState.ACTIVE


def test_confirmed_finish_submits_every_answer(session: AssessmentSession) -> None:
    session.select_option(1)
    submitted = []
    outcome = session.finish(submitted.append, confirmed=True)
    assert outcome.status == FinishStatus.FINISHED
    assert session.is_finished
    assert len(submitted[0]) == 4
    assert [a.question_id for a in submitted[0]] == [1, 2, 3, 4]
    assert submitted[0][0].answer == [False, True]


def test_complete_finish_needs_no_confirmation(session: AssessmentSession) -> None:
    _answer_all(session)
    assert session.is_complete
    outcome = session.finish()
    assert outcome.status == FinishStatus.FINISHED
    assert outcome.unanswered == []
    assert outcome.answers[3].answer == "Berlin"


def test_failed_submit_keeps_session_active(session: AssessmentSession) -> None:
    def submit(answers) -> None:
        raise RuntimeError("offline")

    with pytest.raises(RuntimeError):
        session.finish(submit, confirmed=True)
    assert session.state == SessionState.ACTIVE


def test_finished_session_rejects_changes(session: AssessmentSession) -> None:
    session.finish(confirmed=True)
    with pytest.raises(SessionFinishedError):
        session.next()
    with pytest.raises(SessionFinishedError):
        session.select_option(0)
    with pytest.raises(SessionFinishedError):
        session.finish(confirmed=True)


def test_session_needs_questions() -> None:
    with pytest.raises(ValueError):
        AssessmentSession([])
