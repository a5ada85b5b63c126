"""
User document model.

Maps to the ``users`` collection. Users only ever arrive through GitHub
OAuth, so the document id is the GitHub account id (as a string) and the
profile fields mirror GitHub's ``/user`` payload.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from schemas.models.base import StoredModel


class UserDoc(StoredModel):
    """Document model for the ``users`` collection."""

    login: str
    name: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None
    github_id: int
    bio: Optional[str] = None
    company: Optional[str] = None
    location: Optional[str] = None
    public_repos: int = 0
    followers: int = 0
    following: int = 0
    github_created_at: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    def session_profile(self) -> dict:
        """The subset of the profile exposed to the browser session."""
        return {
            "id": self.id,
            "login": self.login,
            "name": self.name or self.login,
            "email": self.email,
            "avatar_url": self.avatar_url,
            "github_id": self.github_id,
        }
