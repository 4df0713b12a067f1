"""User domain model — maps to the 'users' table."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.sql import func

from griffin.infrastructure.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(30), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)

    # Profile
    profile_name = Column(String(50), nullable=True)
    profile_avatar = Column(String(500), nullable=True)
    profile_bio = Column(String(200), nullable=True)

    is_verified = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)

    # Quota / usage
    review_limit = Column(Integer, nullable=False, default=100)
    total_reviews = Column(Integer, nullable=False, default=0)
    last_review_at = Column(DateTime(timezone=True), nullable=True, index=True)
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    @property
    def reviews_left(self) -> int:
        return max(0, (self.review_limit or 0) - (self.total_reviews or 0))

    def __repr__(self):
        return f"<User {self.username}>"
