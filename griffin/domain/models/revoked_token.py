"""Revoked access tokens — JWT ids invalidated by logout."""

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.sql import func

from griffin.infrastructure.database import Base


class RevokedToken(Base):
    __tablename__ = "revoked_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    jti = Column(String(64), unique=True, nullable=False, index=True)
    user_id = Column(Integer, nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    revoked_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<RevokedToken {self.jti}>"
