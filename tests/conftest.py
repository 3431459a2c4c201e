import os
import tempfile
from pathlib import Path

import pytest

# Configuration is read at import time; point it at throwaway locations first.
_DATA_DIR = Path(tempfile.mkdtemp(prefix="quizbuilder-tests-"))
os.environ.setdefault("QUIZ_DATA_DIR", str(_DATA_DIR))
os.environ.setdefault("QUIZ_UPLOADS_DIR", str(_DATA_DIR / "uploads"))
os.environ.setdefault("DATABASE_URL", "sqlite://")

from quizbuilder.models.submissions import (  # noqa: E402
    FetchedTest,
    QuestionSubmission,
    TestResult,
)
from quizbuilder.services.backend_client import (  # noqa: E402
    BackendResponseError,
    ImageUploadError,
)


class FakeBackendClient:
    """Records calls instead of talking HTTP."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, object]] = []
        self.tests: dict[int, FetchedTest] = {}
        self.results: list[TestResult] = []
        self.failures: dict[str, Exception] = {}
        self.deleted_images: list[str] = []

    def _call(self, name: str, payload: object = None) -> None:
        self.calls.append((name, payload))
        failure = self.failures.get(name)
        if failure is not None:
            raise failure

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def create_test(self, submission):
        self._call("create_test", submission)
        return {"id": 101}

    def update_test(self, test_id, submission):
        self._call("update_test", (test_id, submission))
        return None

    def delete_test(self, test_id):
        self._call("delete_test", test_id)

    def _fetch(self, test_id):
        if test_id not in self.tests:
            raise BackendResponseError("Test not found", 404)
        return self.tests[test_id]

    def get_test(self, test_id):
        self._call("get_test", test_id)
        return self._fetch(test_id)

    def get_test_for_passing(self, test_id):
        self._call("get_test_for_passing", test_id)
        return self._fetch(test_id)

    def finish_test(self, test_result_id, answers):
        self._call("finish_test", (test_result_id, answers))

    def get_test_result(self, test_result_id):
        self._call("get_test_result", test_result_id)
        for result in self.results:
            if result.id == test_result_id:
                return result
        raise BackendResponseError("Test result not found", 404)

    def get_test_results(self, test_id=None):
        self._call("get_test_results", test_id)
        return [r for r in self.results if test_id is None or r.testId == test_id]

    def upload_image(self, path):
        self._call("upload_image", path)
        if not Path(path).exists():
            raise ImageUploadError()
        return f"https://img.example.com/quiz/{Path(path).stem}.png"

    def delete_image(self, url):
        self._call("delete_image", url)
        self.deleted_images.append(url)


def make_fetched_test(test_id: int = 7, image_url: str | None = None) -> FetchedTest:
    """A stored test with one question of every type."""
    return FetchedTest(
        id=test_id,
        title="Capitals",
        description="European capitals",
        questions=[
            QuestionSubmission(
                id=1,
                testId=test_id,
                index=0,
                type=0,
                text="Capital of France?",
                taskJson='{"options":["Paris","Rome"],"answer":[true,false]}',
                imageUrl=image_url,
            ),
            QuestionSubmission(
                id=2,
                testId=test_id,
                index=1,
                type=1,
                text="Cities in Italy?",
                taskJson='{"options":["Milan","Lyon","Turin"],"answer":[true,false,true]}',
            ),
            QuestionSubmission(
                id=3,
                testId=test_id,
                index=2,
                type=2,
                text=None,
                taskJson='{"answer":[["Spain","Madrid"],["Austria","Vienna"]]}',
            ),
            QuestionSubmission(
                id=4,
                testId=test_id,
                index=3,
                type=3,
                text="The capital of Germany is ___",
                taskJson='{"answer":"Berlin"}',
            ),
        ],
    )


@pytest.fixture
def fake_client() -> FakeBackendClient:
    return FakeBackendClient()


@pytest.fixture
def fetched_test() -> FetchedTest:
    return make_fetched_test()
