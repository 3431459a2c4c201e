"""API route modules."""
from quizbuilder.routes import attempts, drafts, statistics

__all__ = ["attempts", "drafts", "statistics"]
