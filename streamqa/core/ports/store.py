"""
Session and question store ports.

The credit engine only reads from these collaborators; creation and
moderation of sessions and questions belong to the store itself.
"""

from __future__ import annotations

from typing import Protocol

from streamqa.domain.entities import Question, Session


class SessionLookupPort(Protocol):
    """Read access to sessions."""

    def get_session(self, session_id: str) -> Session | None:
        """Get session by ID, or None if unknown."""
        ...


class QuestionLookupPort(Protocol):
    """Read access to questions."""

    def get_questions_by_session(self, session_id: str) -> list[Question]:
        """List every question of a session, any status."""
        ...
