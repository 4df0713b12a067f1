"""
SQLAlchemy Implementation of User Repository.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func

from griffin.domain.models.user import User
from griffin.domain.repositories.user_repository import UserRepository
from griffin.infrastructure.repositories.base_repository import SQLAlchemyRepository


class SQLAlchemyUserRepository(SQLAlchemyRepository[User], UserRepository):
    """User repository implementation using SQLAlchemy."""

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()

    def get_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(User.username == username).first()

    def increment_review_count(self, user: User) -> bool:
        """Count one review against the quota in a single conditional UPDATE.

        Returns False, leaving the row untouched, when the quota is already used up.
        """
        counted = (
            self.db.query(User)
            .filter(User.id == user.id, User.total_reviews < User.review_limit)
            .update(
                {User.total_reviews: User.total_reviews + 1, User.last_review_at: datetime.now(timezone.utc)},
                synchronize_session=False,
            )
        )
        self.db.commit()
        self.db.refresh(user)
        return bool(counted)
