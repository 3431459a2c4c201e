"""
HTTP client for the persistence, grading and image hosting service.

Failures are classified here into the error classes below; routes only map
those to status codes.
"""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import urlparse

import requests
from pydantic import ValidationError

from quizbuilder.config import BACKEND_TIMEOUT_SECONDS, BACKEND_URL, UPLOAD_TIMEOUT_SECONDS
from quizbuilder.models.submissions import (
    AnswerResultSubmission,
    FetchedTest,
    TestResult,
    TestSubmission,
)
from quizbuilder.serialization import questions_from_test

log = logging.getLogger(__name__)

UNKNOWN_ERROR_MESSAGE = "An unknown error occurred"
UNAVAILABLE_MESSAGE = "Server is not responding, please try again later"
IMAGE_UPLOAD_MESSAGE = "File not found"


class BackendError(Exception):
    """Failure talking to the service that is neither of the cases below."""

    def __init__(self, message: str = UNKNOWN_ERROR_MESSAGE) -> None:
        super().__init__(message)
        self.message = message


class BackendResponseError(BackendError):
    """The service answered with an error; its body is shown verbatim."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class BackendUnavailableError(BackendError):
    """No response at all (connection refused, timeout)."""

    def __init__(self, message: str = UNAVAILABLE_MESSAGE) -> None:
        super().__init__(message)


class ImageUploadError(BackendError):
    """An image could not be uploaded; aborts the submission."""

    def __init__(self, message: str = IMAGE_UPLOAD_MESSAGE) -> None:
        super().__init__(message)


def _error_text(response: requests.Response) -> str:
    text = (response.text or "").strip()
    return text or f"Request failed with status {response.status_code}"


def public_id_from_url(url: str) -> str:
    """Hosted image id: the last path segment without its extension."""
    return Path(urlparse(url).path).stem


class BackendClient:
    """Thin wrapper over ``requests.Session`` with explicit timeouts."""

    def __init__(
        self,
        base_url: str = BACKEND_URL,
        timeout: int = BACKEND_TIMEOUT_SECONDS,
        upload_timeout: int = UPLOAD_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
        token: str | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.upload_timeout = upload_timeout
        self.session = session or requests.Session()
        if token:
            self.session.headers.update({"Authorization": f"Bearer {token}"})

    def _request(self, method: str, path: str, timeout: int | None = None, **kwargs) -> requests.Response:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = self.session.request(
                method, url, timeout=timeout or self.timeout, **kwargs
            )
        except (requests.ConnectionError, requests.Timeout) as exc:
            log.warning(f"{method} {url} got no response: {exc}")
            raise BackendUnavailableError() from exc
        except requests.RequestException as exc:
            log.error(f"{method} {url} failed: {exc}")
            raise BackendError() from exc

        if response.status_code >= 400:
            message = _error_text(response)
            log.warning(f"{method} {url} -> {response.status_code}: {message}")
            raise BackendResponseError(message, response.status_code)
        return response

    def _json(self, response: requests.Response) -> object:
        try:
            return response.json()
        except ValueError as exc:
            raise BackendError() from exc

    # Tests

    def create_test(self, submission: TestSubmission) -> object:
        response = self._request("POST", "/tests", json=submission.model_dump())
        log.info(f"Created test '{submission.title}' ({len(submission.questions)} questions)")
        return self._json(response) if response.content else None

    def update_test(self, test_id: int, submission: TestSubmission) -> object:
        response = self._request("PUT", f"/tests/{test_id}", json=submission.model_dump())
        log.info(f"Updated test {test_id}")
        return self._json(response) if response.content else None

    def delete_test(self, test_id: int) -> None:
        self._request("DELETE", f"/tests/{test_id}")
        log.info(f"Deleted test {test_id}")

    def get_test(self, test_id: int) -> FetchedTest:
        """Stored test with its answers, for editing."""
        return self._fetched_test(self._request("GET", f"/tests/{test_id}"))

    def get_test_for_passing(self, test_id: int) -> FetchedTest:
        return self._fetched_test(self._request("GET", f"/tests/{test_id}/pass"))

    def _fetched_test(self, response: requests.Response) -> FetchedTest:
        try:
            test = FetchedTest.model_validate(self._json(response))
        except ValidationError as exc:
            raise BackendError() from exc
        # task payloads are opaque JSON text; reject undecodable ones here
        try:
            questions_from_test(test)
        except (ValueError, TypeError, KeyError) as exc:
            log.warning(f"Test {test.id} has an undecodable question: {exc}")
            raise BackendError() from exc
        return test

    # Results

    def finish_test(self, test_result_id: int, answers: list[AnswerResultSubmission]) -> None:
        self._request(
            "POST",
            f"/tests/results/{test_result_id}/finish",
            json=[answer.model_dump() for answer in answers],
        )
        log.info(f"Submitted {len(answers)} answers for test result {test_result_id}")

    def get_test_result(self, test_result_id: int) -> TestResult:
        payload = self._json(self._request("GET", f"/tests/results/{test_result_id}"))
        try:
            return TestResult.model_validate(payload)
        except ValidationError as exc:
            raise BackendError() from exc

    def get_test_results(self, test_id: int | None = None) -> list[TestResult]:
        params = {"testId": test_id} if test_id is not None else None
        payload = self._json(self._request("GET", "/tests/results", params=params))
        # paged responses wrap the items in "data"
        if isinstance(payload, dict):
            payload = payload.get("data", [])
        if not isinstance(payload, list):
            raise BackendError()
        try:
            return [TestResult.model_validate(item) for item in payload]
        except ValidationError as exc:
            raise BackendError() from exc

    # Images

    def upload_image(self, path: str | Path) -> str:
        """Upload a local image and return its hosted URL."""
        path = Path(path)
        try:
            content = path.read_bytes()
            response = self._request(
                "POST",
                "/cloudinary/upload",
                timeout=self.upload_timeout,
                files={"file": (path.name, content)},
            )
            url = self._json(response).get("url")
        except (OSError, AttributeError, BackendError) as exc:
            log.warning(f"Image upload of {path.name} failed: {exc}")
            raise ImageUploadError() from exc
        if not url:
            raise ImageUploadError()
        log.info(f"Uploaded {path.name} -> {url}")
        return url

    def delete_image(self, url: str) -> None:
        public_id = public_id_from_url(url)
        self._request("DELETE", f"/cloudinary/delete/{public_id}")
        log.info(f"Deleted hosted image {public_id}")
