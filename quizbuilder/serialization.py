from __future__ import annotations

from typing import Any, Iterable, Mapping

from quizbuilder.models.questions import (
    FillInBlankTask,
    MatchingTask,
    MultipleChoiceTask,
    Question,
    QuestionType,
    SingleChoiceTask,
    Task,
    default_task,
)
from quizbuilder.models.submissions import (
    AnswerResultSubmission,
    FetchedTest,
    QuestionSubmission,
    TestSubmission,
)
from quizbuilder.services.session_service import UserAnswer
from quizbuilder.utils.json_utils import compact_json_dump, json_load


def task_to_dict(task: Task) -> dict[str, Any]:
    if isinstance(task, (SingleChoiceTask, MultipleChoiceTask)):
        return {"options": list(task.options), "answer": list(task.answer)}
    if isinstance(task, MatchingTask):
        return {"answer": [[term, definition] for term, definition in task.answer]}
    return {"answer": task.answer}


def task_from_dict(question_type: QuestionType | int, data: Mapping[str, Any]) -> Task:
    """Rebuild a task payload; missing fields take the variant's defaults."""
    question_type = QuestionType(question_type)
    if not isinstance(data, Mapping):
        raise ValueError(f"Task of a {question_type.name} question must be an object")
    task = default_task(question_type)
    if question_type in (QuestionType.SINGLE_CHOICE, QuestionType.MULTIPLE_CHOICE):
        options = data.get("options", task.options)
        answer = data.get("answer", task.answer)
        if len(options) != len(answer):
            raise ValueError("Options and answer must have the same length")
        return type(task)(options=list(options), answer=list(answer))
    if question_type == QuestionType.MATCHING:
        return MatchingTask(answer=[tuple(pair) for pair in data.get("answer", task.answer)])
    return FillInBlankTask(answer=data.get("answer", task.answer))


def task_to_json(task: Task) -> str:
    return compact_json_dump(task_to_dict(task))


def task_from_json(question_type: QuestionType | int, raw: str) -> Task:
    return task_from_dict(question_type, json_load(raw))


def question_to_state(question: Question) -> dict[str, Any]:
    return {
        "id": question.id,
        "testId": question.test_id,
        "index": question.index,
        "type": int(question.type),
        "text": question.text,
        "imageUrl": question.image_url,
        "task": task_to_dict(question.task),
    }


def question_from_state(data: Mapping[str, Any]) -> Question:
    return Question(
        task=task_from_dict(data["type"], data.get("task", {})),
        text=data.get("text") or "",
        image_url=data.get("imageUrl"),
        id=data.get("id", 0),
        test_id=data.get("testId", 0),
        index=data.get("index", 0),
    )


def question_to_submission(
    question: Question,
    index: int,
    image_url: str | None = None,
) -> QuestionSubmission:
    """Wire form of one question at position ``index``."""
    return QuestionSubmission(
        id=question.id,
        testId=question.test_id,
        index=index,
        type=int(question.type),
        text=question.text if question.has_prompt else None,
        taskJson=task_to_json(question.task),
        imageUrl=image_url if image_url is not None else question.image_url,
    )


def question_from_submission(item: QuestionSubmission) -> Question:
    return Question(
        task=task_from_json(item.type, item.taskJson),
        text=item.text or "",
        image_url=item.imageUrl,
        id=item.id,
        test_id=item.testId,
        index=item.index,
    )


def serialize_test_submission(
    title: str,
    description: str | None,
    questions: Iterable[Question],
    image_urls: Mapping[str, str] | None = None,
) -> TestSubmission:
    """Build the create/update payload.

    ``index`` comes from the iteration order. ``image_urls`` maps local image
    references to their uploaded URLs.
    """
    image_urls = image_urls or {}
    return TestSubmission(
        title=title.strip(),
        description=description or None,
        questions=[
            question_to_submission(question, index, image_urls.get(question.image_url or ""))
            for index, question in enumerate(questions)
        ],
    )


def questions_from_test(test: FetchedTest) -> list[Question]:
    """Questions of a fetched test in stored order."""
    items = sorted(test.questions, key=lambda item: item.index)
    return [question_from_submission(item) for item in items]


def answer_to_json(answer: UserAnswer) -> str:
    if answer.type == QuestionType.MATCHING:
        value: Any = [[term, definition] for term, definition in answer.answer]
    elif isinstance(answer.answer, list):
        value = list(answer.answer)
    else:
        value = answer.answer
    return compact_json_dump({"answer": value})


def serialize_answer_results(answers: Iterable[UserAnswer]) -> list[AnswerResultSubmission]:
    return [
        AnswerResultSubmission(
            questionId=answer.question_id,
            type=int(answer.type),
            userAnswerJson=answer_to_json(answer),
        )
        for answer in answers
    ]
