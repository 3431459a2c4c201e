"""Statistics over past attempts.

A display aggregate over results the grading service has already scored;
nothing here grades.
"""
from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable

from quizbuilder.models.submissions import TestResult

NO_SCORE_DISPLAY = "—"


@dataclass(frozen=True)
class ResultProjection:
    """Attempt counts and average score of one test."""

    attempts_completed: int = 0
    attempts_in_progress: int = 0
    average_score: float | None = None

    @property
    def average_score_display(self) -> str:
        if self.average_score is None:
            return NO_SCORE_DISPLAY
        return f"{self.average_score:.2f}%"

    def to_dict(self) -> dict[str, object]:
        return {
            "attemptsCompleted": self.attempts_completed,
            "attemptsInProgress": self.attempts_in_progress,
            "averageScore": self.average_score,
            "averageScoreDisplay": self.average_score_display,
        }


def project_results(results: Iterable[TestResult], test_id: int | None = None) -> ResultProjection:
    """Aggregate results, optionally keeping only those of ``test_id``.

    Completed attempts are those with an end time. The average is the summed
    score over the summed number of graded answers of completed attempts, as a
    percentage; it is undefined when that number is zero.
    """
    completed = 0
    in_progress = 0
    score_total = 0.0
    answer_total = 0

    for result in results:
        if test_id is not None and result.testId != test_id:
            continue
        if result.endedAt is None:
            in_progress += 1
            continue
        completed += 1
        score_total += result.score or 0
        answer_total += len(result.answerResults)

    average = score_total / answer_total * 100 if answer_total else None
    return ResultProjection(
        attempts_completed=completed,
        attempts_in_progress=in_progress,
        average_score=average,
    )


def project_results_by_test(results: Iterable[TestResult]) -> dict[int, ResultProjection]:
    """One projection per test id present in ``results``."""
    grouped: dict[int, list[TestResult]] = defaultdict(list)
    for result in results:
        grouped[result.testId].append(result)
    return {test_id: project_results(items) for test_id, items in grouped.items()}
