"""Auth service — password hashing, registration, login and account management."""

import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

import structlog
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from griffin.config import get_settings
from griffin.core.exceptions import (
    AuthError,
    ConflictError,
    ForbiddenError,
    HashingError,
    NotFoundError,
    ValidationError,
)
from griffin.domain.models.password_reset_token import PasswordResetToken
from griffin.domain.models.user import User
from griffin.domain.schemas.auth import Profile, RegisterRequest
from griffin.domain.validation import (
    PASSWORD_MAX_BYTES,
    validate_password,
    validate_profile,
    validate_registration,
)
from griffin.infrastructure.repositories.user_repository import SQLAlchemyUserRepository

settings = get_settings()
logger = structlog.get_logger(__name__)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS)

INVALID_CREDENTIALS = "Invalid email or password"


def hash_password(password: str) -> str:
    try:
        return pwd_context.hash(password)
    except (ValueError, TypeError) as e:
        logger.error("Password hashing failed", error=str(e))
        raise HashingError() from e


def verify_password(plain_password: str, hashed_password: str) -> bool:
    # bcrypt compares only the first 72 bytes, so longer input never matches
    if len(plain_password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def _users(db: Session) -> SQLAlchemyUserRepository:
    return SQLAlchemyUserRepository(db, User)


def _raise_violations(violations) -> None:
    if violations:
        raise ValidationError("Validation failed", errors=[v.model_dump() for v in violations])


def get_user(db: Session, user_id: int) -> User:
    user = _users(db).get_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return _users(db).get_by_email(email)


def register_user(db: Session, candidate: RegisterRequest) -> User:
    profile = candidate.profile.model_dump(exclude_none=True) if candidate.profile else {}
    _raise_violations(validate_registration(candidate.username, candidate.email, candidate.password, profile))

    users = _users(db)
    email = candidate.email.strip().lower()
    if users.get_by_email(email):
        raise ConflictError("User with this email already exists", errors=[{"field": "email", "message": "Email already registered"}])
    if users.get_by_username(candidate.username):
        raise ConflictError("Username is already taken", errors=[{"field": "username", "message": "Username already taken"}])

    user = User(
        username=candidate.username,
        email=email,
        password_hash=hash_password(candidate.password),
        profile_name=profile.get("name"),
        profile_avatar=profile.get("avatar"),
        profile_bio=profile.get("bio"),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.info("Registration lost unique-index race", email=email, username=candidate.username)
        raise ConflictError("User with this email or username already exists") from e
    db.refresh(user)
    logger.info("User registered", user_id=user.id, username=user.username)
    return user


def authenticate_user(db: Session, email: str, password: str) -> User:
    user = _users(db).get_by_email(email or "")
    if user is None:
        # Keep the timing of an unknown email in line with a wrong password
        pwd_context.dummy_verify()
        logger.info("Login failed", reason="unknown_email")
        raise AuthError(INVALID_CREDENTIALS)
    if not verify_password(password or "", user.password_hash):
        logger.info("Login failed", reason="wrong_password", user_id=user.id)
        raise AuthError(INVALID_CREDENTIALS)
    if not user.is_active:
        logger.info("Login failed", reason="inactive_account", user_id=user.id)
        raise AuthError(INVALID_CREDENTIALS)

    user.last_login_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)
    logger.info("User logged in", user_id=user.id)
    return user


def update_profile(db: Session, user: User, profile: Profile) -> User:
    changes = profile.model_dump(exclude_unset=True)
    _raise_violations(validate_profile(changes))
    return _users(db).update(user, {f"profile_{key}": value for key, value in changes.items()})


def change_password(db: Session, user: User, current_password: str, new_password: str, confirm_new_password: str) -> None:
    _raise_violations(validate_password(new_password, field="newPassword"))
    if new_password != confirm_new_password:
        raise ValidationError("Passwords do not match", errors=[{"field": "confirmNewPassword", "message": "Passwords do not match"}])
    if not verify_password(current_password, user.password_hash):
        logger.info("Password change refused", reason="wrong_current_password", user_id=user.id)
        raise AuthError("Current password is incorrect")
    user.password_hash = hash_password(new_password)
    db.commit()
    logger.info("Password changed", user_id=user.id)


def verify_email(db: Session, user: User) -> User:
    return _users(db).update(user, {"is_verified": True})


def deactivate_user(db: Session, user: User) -> User:
    logger.info("User deactivated", user_id=user.id)
    return _users(db).update(user, {"is_active": False})


def can_user_review(user: User) -> Tuple[bool, int]:
    reviews_left = user.reviews_left
    return reviews_left > 0, reviews_left


def increment_review_count(db: Session, user: User) -> User:
    """Count a review against the user's quota, or raise ForbiddenError when none are left."""
    if not _users(db).increment_review_count(user):
        logger.info("Review refused", reason="quota_exhausted", user_id=user.id)
        raise ForbiddenError("You have reached your review limit")
    return user


def _hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_password_reset(db: Session, email: str) -> Optional[str]:
    """Issue a one-time reset token. Returns None for unknown or inactive accounts."""
    user = _users(db).get_by_email(email or "")
    if user is None or not user.is_active:
        logger.info("Password reset requested", reason="unknown_email")
        return None

    token = secrets.token_hex(32)
    db.add(PasswordResetToken(
        token_hash=_hash_reset_token(token),
        user_id=user.id,
        expires_at=datetime.now(timezone.utc) + timedelta(minutes=settings.PASSWORD_RESET_MINUTES),
    ))
    db.commit()
    logger.info("Password reset token issued", user_id=user.id)
    return token


def reset_password(db: Session, token: str, new_password: str, confirm_new_password: str) -> User:
    _raise_violations(validate_password(new_password, field="newPassword"))
    if new_password != confirm_new_password:
        raise ValidationError("Passwords do not match", errors=[{"field": "confirmNewPassword", "message": "Passwords do not match"}])

    record = (
        db.query(PasswordResetToken)
        .filter(PasswordResetToken.token_hash == _hash_reset_token(token or ""))
        .first()
    )
    if record is None or _as_utc(record.expires_at) < datetime.now(timezone.utc):
        raise AuthError("Invalid or expired reset token")

    user = get_user(db, record.user_id)
    user.password_hash = hash_password(new_password)
    db.delete(record)
    db.commit()
    db.refresh(user)
    logger.info("Password reset completed", user_id=user.id)
    return user


def purge_expired_resets(db: Session) -> int:
    deleted = (
        db.query(PasswordResetToken)
        .filter(PasswordResetToken.expires_at < datetime.now(timezone.utc))
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
