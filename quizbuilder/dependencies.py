"""FastAPI dependencies."""
from quizbuilder.services.backend_client import BackendClient


def get_backend_client() -> BackendClient:
    """Client for the persistence, grading and image service."""
    return BackendClient()
