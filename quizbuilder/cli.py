import argparse
import sys
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from quizbuilder.logging_setup import setup_console_logging
from quizbuilder.models.collection import QuestionCollection
from quizbuilder.models.submissions import TestResult, TestSubmission
from quizbuilder.serialization import question_from_submission
from quizbuilder.services.draft_service import TestDraft
from quizbuilder.services.projection_service import project_results
from quizbuilder.services.validation_service import validate_draft
from quizbuilder.utils.json_utils import json_dump


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Check quiz payloads and results offline")
    commands = parser.add_subparsers(dest="command", required=True)

    validate = commands.add_parser("validate", help="Validate a test submission JSON file")
    validate.add_argument("file", type=Path, help="Path to the submission JSON")

    stats = commands.add_parser("stats", help="Summarize a JSON list of test results")
    stats.add_argument("file", type=Path, help="Path to the results JSON")
    stats.add_argument("--test-id", type=int, default=None, help="Only count this test")
    return parser.parse_args(argv)


def _validate(path: Path) -> int:
    submission = TestSubmission.model_validate_json(path.read_text(encoding="utf-8"))
    questions = [
        question_from_submission(item)
        for item in sorted(submission.questions, key=lambda item: item.index)
    ]
    draft = TestDraft(
        title=submission.title,
        description=submission.description or "",
        questions=QuestionCollection.from_questions(questions),
    )
    errors = validate_draft(draft)
    if not errors:
        print(f"{path.name}: OK ({len(questions)} questions)")
        return 0

    # report questions by position, keys are throwaway here
    positions = {key: index for index, key in enumerate(draft.questions.keys())}
    report = errors.to_dict()
    report["questions"] = {
        str(positions[key]): question_errors.to_dict()
        for key, question_errors in errors.questions.items()
    }
    print(json_dump(report))
    return 1


def _stats(path: Path, test_id: int | None) -> int:
    results = TypeAdapter(list[TestResult]).validate_json(path.read_text(encoding="utf-8"))
    projection = project_results(results, test_id)
    print(f"Completed attempts: {projection.attempts_completed}")
    print(f"In progress: {projection.attempts_in_progress}")
    print(f"Average score: {projection.average_score_display}")
    return 0


def main(argv: list[str] | None = None) -> int:
    setup_console_logging()
    args = parse_args(argv)
    try:
        if args.command == "validate":
            return _validate(args.file)
        return _stats(args.file, args.test_id)
    except (OSError, ValidationError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
