import pytest

from quizbuilder.models.collection import QuestionCollection, QuestionEntry
from quizbuilder.models.questions import (
    FillInBlankTask,
    MatchingTask,
    MultipleChoiceTask,
    Question,
    SingleChoiceTask,
)
from quizbuilder.services.draft_service import TestDraft
from quizbuilder.services.validation_service import (
    DUPLICATE_MESSAGE,
    QUESTIONS_INVALID_MESSAGE,
    REQUIRED_MESSAGE,
    validate_collection,
    validate_draft,
    validate_question,
    validate_title,
)


def test_valid_single_choice_has_no_errors() -> None:
    question = Question(task=SingleChoiceTask(["Paris", "Rome"], [True, False]), text="Capital?")
    assert not validate_question(question)
    assert validate_question(question).to_dict() == {}


def test_option_errors_are_index_aligned() -> None:
    question = Question(
        task=MultipleChoiceTask(["ok", "  ", "x" * 31], [True, False, False]),
        text="Pick",
    )
    errors = validate_question(question)
    assert errors.options == [None, REQUIRED_MESSAGE, errors.options[2]]
    assert errors.options[2] is not None
    assert errors.text is None


@pytest.mark.parametrize("text", ["", "   ", "x" * 129])
def test_prompt_text_is_required_and_bounded(text: str) -> None:
    question = Question(task=FillInBlankTask("word"), text=text)
    assert validate_question(question).text is not None


def test_matching_has_no_prompt_rule() -> None:
    question = Question(task=MatchingTask([("a", "b"), ("c", "d")]), text="")
    assert not validate_question(question)


def test_matching_duplicates_across_columns_are_all_flagged() -> None:
    question = Question(task=MatchingTask([("Apple", "Red"), (" apple ", "Green")]))
    errors = validate_question(question)
    assert errors.answer_pairs == [[DUPLICATE_MESSAGE, None], [DUPLICATE_MESSAGE, None]]


def test_matching_duplicate_between_term_and_definition() -> None:
    question = Question(task=MatchingTask([("Sun", "STAR"), ("star", "Moon")]))
    errors = validate_question(question)
    assert errors.answer_pairs == [[None, DUPLICATE_MESSAGE], [DUPLICATE_MESSAGE, None]]


def test_matching_empty_and_long_values() -> None:
    question = Question(task=MatchingTask([("", "b"), ("c", "d" * 101)]))
    errors = validate_question(question)
    assert errors.answer_pairs[0] == [REQUIRED_MESSAGE, None]
    assert errors.answer_pairs[1][0] is None
    assert errors.answer_pairs[1][1] is not None


def test_fill_in_blank_answer_rules() -> None:
    assert validate_question(Question(task=FillInBlankTask(""), text="Q")).fill_in_blank_answer == REQUIRED_MESSAGE
    assert validate_question(Question(task=FillInBlankTask("x" * 51), text="Q")).fill_in_blank_answer
    assert not validate_question(Question(task=FillInBlankTask("Berlin"), text="Q"))


def test_validation_is_idempotent_and_pure() -> None:
    question = Question(task=MatchingTask([("a", "A"), ("", "b")]))
    snapshot = question.copy()
    first = validate_question(question)
    second = validate_question(question)
    assert first == second
    assert question == snapshot


def test_collection_reports_only_failing_questions() -> None:
    collection = QuestionCollection(
        [
            QuestionEntry("good", Question(task=FillInBlankTask("x"), text="Q")),
            QuestionEntry("bad", Question(task=FillInBlankTask(""), text="Q")),
        ]
    )
    assert list(validate_collection(collection)) == ["bad"]


def test_title_rules() -> None:
    assert validate_title("") == REQUIRED_MESSAGE
    assert validate_title("x" * 101) is not None
    assert validate_title("Quiz") is None


def test_draft_errors_carry_aggregate_message() -> None:
    draft = TestDraft(title="", description="d" * 501)
    errors = validate_draft(draft)
    assert errors
    assert errors.title == REQUIRED_MESSAGE
    assert errors.description is not None
    assert errors.message == QUESTIONS_INVALID_MESSAGE
    assert list(errors.to_dict()["questions"].values())[0]["text"] == REQUIRED_MESSAGE


def test_duplicate_detection_ignores_case_and_whitespace() -> None:
    question = Question(task=MatchingTask([("a", "x"), ("A ", "y")]))
    assert validate_question(question).answer_pairs == [
        [DUPLICATE_MESSAGE, None],
        [DUPLICATE_MESSAGE, None],
    ]


@pytest.mark.parametrize(
    "task",
    [
        SingleChoiceTask(["a", "b"], [False, False]),
        SingleChoiceTask(["a", "b"], [True, True]),
        SingleChoiceTask(["a", "b", "c"], [True, False]),
        MultipleChoiceTask(["a", "b"], [False, False]),
        MultipleChoiceTask(list("abcde"), [True] * 5),
        MatchingTask([("a", "b")]),
    ],
)
def test_answer_structure_is_validated(task) -> None:
    errors = validate_question(Question(task=task, text="Q"))
    assert errors
    assert errors.answer is not None
    assert "answer" in errors.to_dict()


def test_well_formed_answers_have_no_structure_error() -> None:
    assert validate_question(
        Question(task=MultipleChoiceTask(["a", "b", "c"], [True, False, True]), text="Q")
    ).answer is None
    assert validate_question(Question(task=MatchingTask([("a", "b"), ("c", "d")]))).answer is None
