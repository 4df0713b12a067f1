"""FastAPI dependency — bearer token auth."""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from griffin.application.services.token_service import verify_token
from griffin.core.exceptions import AuthError
from griffin.domain.models.user import User
from griffin.infrastructure.database import get_db

security = HTTPBearer(auto_error=False)


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    if credentials is None or not credentials.credentials:
        raise AuthError("Access denied. No token provided.")
    return credentials.credentials


def get_current_user(
    token: str = Depends(get_bearer_token),
    db: Session = Depends(get_db),
) -> User:
    """Verify the bearer token and load its user."""
    claims = verify_token(db, token)

    user = db.get(User, int(claims["sub"]))
    if user is None or not user.is_active:
        raise AuthError("User not found or inactive")

    return user
