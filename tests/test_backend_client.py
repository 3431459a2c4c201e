from pathlib import Path

import pytest
import requests

from quizbuilder.models.submissions import AnswerResultSubmission, QuestionSubmission
from quizbuilder.models.submissions import TestSubmission as Submission
from quizbuilder.services.backend_client import (
    UNAVAILABLE_MESSAGE,
    UNKNOWN_ERROR_MESSAGE,
    BackendClient,
    BackendError,
    BackendResponseError,
    BackendUnavailableError,
    ImageUploadError,
    public_id_from_url,
)


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: object = None, text: str | None = None):
        self.status_code = status_code
        self._payload = payload
        if text is None:
            text = "" if payload is None else "json"
        self.text = text
        self.content = text.encode("utf-8")

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeSession:
    def __init__(self, responses: list[object] | None = None):
        self.headers: dict[str, str] = {}
        self.calls: list[tuple[str, str, dict]] = []
        self.responses = list(responses or [])

    def request(self, method, url, timeout=None, **kwargs):
        self.calls.append((method, url, {"timeout": timeout, **kwargs}))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _client(*responses: object) -> tuple[BackendClient, FakeSession]:
    session = FakeSession(list(responses))
    client = BackendClient("http://backend.test/api/", timeout=5, upload_timeout=9, session=session)
    return client, session


def _submission() -> Submission:
    return Submission(
        title="Quiz",
        questions=[QuestionSubmission(type=3, text="Q", taskJson='{"answer":"x"}')],
    )


def test_create_test_posts_submission() -> None:
    client, session = _client(FakeResponse(200, {"id": 12}))
    assert client.create_test(_submission()) == {"id": 12}
    method, url, kwargs = session.calls[0]
    assert (method, url) == ("POST", "http://backend.test/api/tests")
    assert kwargs["timeout"] == 5
    assert kwargs["json"]["questions"][0]["taskJson"] == '{"answer":"x"}'


def test_update_and_delete_paths() -> None:
    client, session = _client(FakeResponse(204), FakeResponse(204))
    client.update_test(4, _submission())
    client.delete_test(4)
    assert [(m, u) for m, u, _ in session.calls] == [
        ("PUT", "http://backend.test/api/tests/4"),
        ("DELETE", "http://backend.test/api/tests/4"),
    ]


def test_token_sets_authorization_header() -> None:
    session = FakeSession()
    BackendClient("http://backend.test/api", session=session, token="abc")
    assert session.headers["Authorization"] == "Bearer abc"


def test_error_body_is_surfaced_verbatim() -> None:
    client, _ = _client(FakeResponse(400, text="Title is too long"))
    with pytest.raises(BackendResponseError) as exc_info:
        client.delete_test(1)
    assert exc_info.value.message == "Title is too long"
    assert exc_info.value.status_code == 400


@pytest.mark.parametrize("error", [requests.ConnectionError("refused"), requests.Timeout("slow")])
def test_no_response_is_unavailable(error: Exception) -> None:
    client, _ = _client(error)
    with pytest.raises(BackendUnavailableError) as exc_info:
        client.delete_test(1)
    assert exc_info.value.message == UNAVAILABLE_MESSAGE


def test_other_failures_are_unknown() -> None:
    client, _ = _client(requests.RequestException("boom"))
    with pytest.raises(BackendError) as exc_info:
        client.delete_test(1)
    assert type(exc_info.value) is BackendError
    assert exc_info.value.message == UNKNOWN_ERROR_MESSAGE


def test_get_test_for_passing_parses_payload() -> None:
    payload = {
        "id": 7,
        "title": "Capitals",
        "questions": [{"id": 1, "testId": 7, "index": 0, "type": 3, "text": "Q", "taskJson": "{}"}],
        "extra": "ignored",
    }
    client, session = _client(FakeResponse(200, payload))
    test = client.get_test_for_passing(7)
    assert session.calls[0][1] == "http://backend.test/api/tests/7/pass"
    assert test.id == 7
    assert test.questions[0].type == 3


def test_malformed_test_payload_is_unknown_error() -> None:
    client, _ = _client(FakeResponse(200, {"title": "no id"}))
    with pytest.raises(BackendError):
        client.get_test(7)


def test_finish_test_posts_answers() -> None:
    client, session = _client(FakeResponse(200))
    client.finish_test(55, [AnswerResultSubmission(questionId=1, type=3, userAnswerJson='{"answer":"x"}')])
    method, url, kwargs = session.calls[0]
    assert (method, url) == ("POST", "http://backend.test/api/tests/results/55/finish")
    assert kwargs["json"] == [{"questionId": 1, "type": 3, "userAnswerJson": '{"answer":"x"}'}]


def test_get_test_results_accepts_paged_payload() -> None:
    item = {"id": 1, "testId": 7, "userId": 2, "score": 3, "endedAt": None, "answerResults": []}
    client, session = _client(FakeResponse(200, {"data": [item], "totalCount": 1}))
    results = client.get_test_results(7)
    assert session.calls[0][2]["params"] == {"testId": 7}
    assert results[0].testId == 7
    assert results[0].endedAt is None


def test_upload_image_returns_url(tmp_path: Path) -> None:
    image = tmp_path / "map.png"
    image.write_bytes(b"png")
    client, session = _client(FakeResponse(200, {"url": "https://img.example.com/quiz/map.png"}))
    assert client.upload_image(image) == "https://img.example.com/quiz/map.png"
    _, url, kwargs = session.calls[0]
    assert url == "http://backend.test/api/cloudinary/upload"
    assert kwargs["timeout"] == 9
    assert kwargs["files"]["file"] == ("map.png", b"png")


def test_upload_missing_file_fails(tmp_path: Path) -> None:
    client, session = _client()
    with pytest.raises(ImageUploadError) as exc_info:
        client.upload_image(tmp_path / "missing.png")
    assert exc_info.value.message == "File not found"
    assert session.calls == []


def test_upload_rejected_by_server(tmp_path: Path) -> None:
    image = tmp_path / "map.png"
    image.write_bytes(b"png")
    client, _ = _client(FakeResponse(500, text="storage down"))
    with pytest.raises(ImageUploadError):
        client.upload_image(image)


def test_delete_image_uses_public_id() -> None:
    client, session = _client(FakeResponse(200))
    client.delete_image("https://res.example.com/image/upload/v1/abc123.png")
    assert session.calls[0][1] == "http://backend.test/api/cloudinary/delete/abc123"
    assert public_id_from_url("https://res.example.com/x/y.jpg?v=2") == "y"


def test_undecodable_task_json_is_unknown_error() -> None:
    def payload(question: dict) -> dict:
        question = {"id": 1, "testId": 7, "index": 0, "text": "Q", **question}
        return {"id": 7, "title": "Capitals", "questions": [question]}

    client, _ = _client(
        FakeResponse(200, payload({"type": 0, "taskJson": '{"options":["a","b","c"]}'})),
        FakeResponse(200, payload({"type": 2, "taskJson": "not json"})),
    )
    with pytest.raises(BackendError) as exc_info:
        client.get_test_for_passing(7)
    assert exc_info.value.message == UNKNOWN_ERROR_MESSAGE
    with pytest.raises(BackendError):
        client.get_test(7)


def test_get_test_result() -> None:
    client, session = _client(FakeResponse(200, {"id": 55, "testId": 7, "endedAt": None}))
    result = client.get_test_result(55)
    assert session.calls[0][:2] == ("GET", "http://backend.test/api/tests/results/55")
    assert result.testId == 7
    assert result.endedAt is None
