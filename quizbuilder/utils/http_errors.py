"""Translation of collaborator failures into HTTP errors."""
from fastapi import HTTPException

from quizbuilder.services.backend_client import (
    BackendError,
    BackendResponseError,
    BackendUnavailableError,
    ImageUploadError,
)


def backend_http_error(exc: BackendError) -> HTTPException:
    """Map a collaborator failure to the response the client sees."""
    if isinstance(exc, ImageUploadError):
        return HTTPException(status_code=400, detail=exc.message)
    if isinstance(exc, BackendResponseError):
        status_code = exc.status_code if 400 <= exc.status_code < 500 else 502
        return HTTPException(status_code=status_code, detail=exc.message)
    if isinstance(exc, BackendUnavailableError):
        return HTTPException(status_code=503, detail=exc.message)
    return HTTPException(status_code=502, detail=exc.message)
