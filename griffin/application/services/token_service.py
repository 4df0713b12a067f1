"""Token service — JWT issuing, verification and logout revocation."""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import structlog
from jose import JWTError, jwt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from griffin.config import get_settings
from griffin.core.exceptions import AuthError
from griffin.domain.models.revoked_token import RevokedToken
from griffin.domain.models.user import User

settings = get_settings()
logger = structlog.get_logger(__name__)


def issue_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.JWT_EXPIRATION_MINUTES))
    claims = {
        "sub": str(user.id),
        "email": user.email,
        "jti": uuid.uuid4().hex,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """Check signature and expiry only. Raises AuthError."""
    if not token:
        raise AuthError("Access denied. No token provided.")
    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        logger.info("Token rejected", reason=str(e))
        raise AuthError("Invalid or expired token") from e
    if not claims.get("sub") or not claims.get("jti"):
        raise AuthError("Invalid token")
    return claims


def is_revoked(db: Session, jti: str) -> bool:
    return db.query(RevokedToken.id).filter(RevokedToken.jti == jti).first() is not None


def verify_token(db: Session, token: str) -> Dict[str, Any]:
    """Full verification: signature, expiry and revocation list."""
    claims = decode_token(token)
    if is_revoked(db, claims["jti"]):
        logger.info("Token rejected", reason="revoked", jti=claims["jti"])
        raise AuthError("Token has been revoked")
    return claims


def revoke_token(db: Session, token: str) -> None:
    claims = decode_token(token)
    if is_revoked(db, claims["jti"]):
        return
    db.add(RevokedToken(
        jti=claims["jti"],
        user_id=int(claims["sub"]),
        expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
    ))
    try:
        db.commit()
    except IntegrityError:
        # Concurrent logout with the same token already stored it
        db.rollback()
    logger.info("Token revoked", user_id=claims["sub"], jti=claims["jti"])


def purge_expired_revocations(db: Session) -> int:
    deleted = (
        db.query(RevokedToken)
        .filter(RevokedToken.expires_at < datetime.now(timezone.utc))
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted
