"""
Collaborators attached to the survey being edited.

Roles are informational in the editing core; access control is enforced
by the remote backend.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CollaboratorRole(Enum):
    OWNER = "owner"
    EDITOR = "editor"
    VIEWER = "viewer"


@dataclass(frozen=True)
class Collaborator:
    """
    A user sharing the survey.

    Properties:
        user_id: Backend user id
        role: CollaboratorRole
        id: Membership id assigned by the backend (optional until stored)
        survey_id: Survey the membership belongs to
        name / email: Display details of the user
    """

    user_id: str
    role: CollaboratorRole = CollaboratorRole.VIEWER
    id: Optional[str] = None
    survey_id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None

    @property
    def key(self) -> str:
        """Membership id when known, else the user id."""
        return self.id or self.user_id
