"""Statistics endpoints."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from quizbuilder.dependencies import get_backend_client
from quizbuilder.services.backend_client import BackendClient, BackendError
from quizbuilder.services.projection_service import project_results, project_results_by_test
from quizbuilder.utils.http_errors import backend_http_error

router = APIRouter(prefix="/api/stats", tags=["statistics"])


@router.get("/results")
def result_statistics(
    client: Annotated[BackendClient, Depends(get_backend_client)],
    test_id: int = Query(..., alias="testId", ge=1),
) -> dict[str, object]:
    """Attempt counts and average score of one test."""
    try:
        results = client.get_test_results(test_id)
    except BackendError as e:
        raise backend_http_error(e)
    return {"testId": test_id, **project_results(results, test_id).to_dict()}


@router.get("/results/by-test")
def result_statistics_by_test(
    client: Annotated[BackendClient, Depends(get_backend_client)],
) -> list[dict[str, object]]:
    """Attempt counts and average score of every test the learner took."""
    try:
        results = client.get_test_results()
    except BackendError as e:
        raise backend_http_error(e)
    projections = project_results_by_test(results)
    return [
        {"testId": test_id, **projection.to_dict()}
        for test_id, projection in sorted(projections.items())
    ]
