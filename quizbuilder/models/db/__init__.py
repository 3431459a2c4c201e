"""Database models."""
from quizbuilder.models.db.workspace import WorkspaceKind, WorkspaceRecord

__all__ = [
    "WorkspaceKind",
    "WorkspaceRecord",
]
