"""
Workspace database model: the stored state of one draft or quiz session.
"""

from __future__ import annotations

import enum
import json
import uuid
from datetime import datetime, timezone
from typing import Any

import sqlalchemy as sa
from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from quizbuilder.database import Base


class WorkspaceKind(str, enum.Enum):
    """What a workspace holds."""

    DRAFT = "draft"
    ATTEMPT = "attempt"


class WorkspaceRecord(Base):
    """
    Server-side state of a draft being authored or a quiz being taken.
    The state is kept as one JSON document.
    """

    __tablename__ = "workspaces"

    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, index=True, default=lambda: uuid.uuid4().hex
    )
    kind: Mapped[str] = mapped_column(String(20), index=True, nullable=False)
    state_json: Mapped[str] = mapped_column(Text, nullable=False, default="{}")

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    @property
    def state(self) -> dict[str, Any]:
        """Parse state from JSON."""
        if not self.state_json:
            return {}
        try:
            return json.loads(self.state_json)
        except (json.JSONDecodeError, TypeError):
            return {}

    @state.setter
    def state(self, value: dict[str, Any]) -> None:
        """Serialize state to JSON."""
        self.state_json = json.dumps(value, ensure_ascii=False)
