"""
User Repository Interface.
"""

from typing import Optional

from griffin.domain.models.user import User
from griffin.domain.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Interface for User-specific operations."""

    def get_by_email(self, email: str) -> Optional[User]:
        """Get a user by (case-insensitive) email."""
        ...

    def get_by_username(self, username: str) -> Optional[User]:
        """Get a user by username."""
        ...

    def increment_review_count(self, user: User) -> bool:
        """Bump total_reviews and stamp last_review_at unless the quota is used up."""
        ...
