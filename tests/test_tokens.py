import base64
import json
from datetime import datetime, timedelta, timezone
from unittest import mock

import pytest

from griffin.application.services import auth_service, token_service
from griffin.core.exceptions import AuthError, ForbiddenError, HashingError
from griffin.domain.models.revoked_token import RevokedToken
from griffin.domain.models.user import User
from griffin.domain.schemas.auth import RegisterRequest
from griffin.infrastructure.database import SessionLocal


@pytest.fixture
def user(db):
    return auth_service.register_user(
        db, RegisterRequest(username="carol", email="carol@example.com", password="secret123"),
    )


def test_token_verifies_to_its_user(db, user):
    token = token_service.issue_token(user)
    claims = token_service.verify_token(db, token)
    assert claims["sub"] == str(user.id)
    assert claims["email"] == "carol@example.com"
    assert claims["jti"]


def test_tokens_are_unique(user):
    assert token_service.issue_token(user) != token_service.issue_token(user)


def test_tampered_token_fails(db, user):
    token = token_service.issue_token(user)
    header, payload, signature = token.split(".")
    claims = json.loads(base64.urlsafe_b64decode(payload + "=" * (-len(payload) % 4)))
    claims["sub"] = str(user.id + 1)
    forged = base64.urlsafe_b64encode(json.dumps(claims).encode()).rstrip(b"=").decode()
    with pytest.raises(AuthError):
        token_service.verify_token(db, ".".join([header, forged, signature]))


def test_expired_token_fails(db, user):
    token = token_service.issue_token(user, expires_delta=timedelta(seconds=-5))
    with pytest.raises(AuthError):
        token_service.verify_token(db, token)


def test_malformed_and_missing_tokens_fail(db):
    with pytest.raises(AuthError):
        token_service.verify_token(db, "not.a.jwt")
    with pytest.raises(AuthError):
        token_service.verify_token(db, "")


def test_revoked_token_fails(db, user):
    token = token_service.issue_token(user)
    token_service.revoke_token(db, token)
    token_service.revoke_token(db, token)
    assert db.query(RevokedToken).count() == 1
    with pytest.raises(AuthError, match="revoked"):
        token_service.verify_token(db, token)


def test_purge_expired_revocations(db, user):
    token = token_service.issue_token(user, expires_delta=timedelta(seconds=1))
    token_service.revoke_token(db, token)
    db.query(RevokedToken).update({RevokedToken.expires_at: datetime.now(timezone.utc) - timedelta(days=1)})
    db.commit()
    assert token_service.purge_expired_revocations(db) == 1


def test_hashing_failure_raises_hashing_error(db):
    with mock.patch.object(auth_service.pwd_context, "hash", side_effect=ValueError("boom")):
        with pytest.raises(HashingError):
            auth_service.register_user(
                db, RegisterRequest(username="dave", email="dave@example.com", password="secret123"),
            )


def test_unknown_user_still_runs_a_hash_check(db):
    with mock.patch.object(auth_service.pwd_context, "dummy_verify") as dummy:
        with pytest.raises(AuthError):
            auth_service.authenticate_user(db, "ghost@example.com", "whatever")
    dummy.assert_called_once()


def test_quota_helpers(db, user):
    assert auth_service.can_user_review(user) == (True, 100)
    user.total_reviews = 100
    db.commit()
    assert auth_service.can_user_review(user) == (False, 0)


def test_review_counts_from_separate_sessions_all_land(db, user):
    first, second = SessionLocal(), SessionLocal()
    try:
        # Both sessions read total_reviews == 0 before either writes
        a, b = first.get(User, user.id), second.get(User, user.id)
        auth_service.increment_review_count(first, a)
        auth_service.increment_review_count(second, b)
    finally:
        first.close()
        second.close()

    db.refresh(user)
    assert user.total_reviews == 2
    assert user.last_review_at is not None


def test_quota_cannot_be_overshot_from_a_stale_read(db, user):
    user.review_limit = 1
    db.commit()

    first, second = SessionLocal(), SessionLocal()
    try:
        a, b = first.get(User, user.id), second.get(User, user.id)
        assert auth_service.can_user_review(b) == (True, 1)
        auth_service.increment_review_count(first, a)
        with pytest.raises(ForbiddenError):
            auth_service.increment_review_count(second, b)
    finally:
        first.close()
        second.close()

    db.refresh(user)
    assert user.total_reviews == 1
