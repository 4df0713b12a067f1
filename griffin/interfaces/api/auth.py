"""Auth API routes — register, login, logout, profile and password management."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from griffin.application.services import auth_service, token_service
from griffin.config import get_settings
from griffin.domain.models.user import User
from griffin.domain.schemas.auth import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
    ResetPasswordRequest,
    UsageStats,
    UserRead,
    UserStats,
)
from griffin.infrastructure.database import get_db
from griffin.interfaces.api.deps import get_bearer_token, get_current_user

settings = get_settings()

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def _user_json(user: User) -> dict:
    return UserRead.model_validate(user).model_dump(by_alias=True, mode="json")


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    user = auth_service.register_user(db, body)
    token = token_service.issue_token(user)
    return {
        "success": True,
        "message": "User registered successfully",
        "data": {"user": _user_json(user), "token": token},
    }


@router.post("/login")
def login(body: LoginRequest, db: Session = Depends(get_db)):
    user = auth_service.authenticate_user(db, body.email, body.password)
    token = token_service.issue_token(user)
    return {
        "success": True,
        "message": "Login successful",
        "data": {"token": token, "user": _user_json(user)},
    }


@router.post("/logout")
def logout(
    token: str = Depends(get_bearer_token),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    token_service.revoke_token(db, token)
    return {"success": True, "message": "Logged out successfully"}


@router.get("/me")
def get_me(user: User = Depends(get_current_user)):
    return {"success": True, "data": {"user": _user_json(user)}}


@router.put("/profile")
def update_profile(
    body: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = auth_service.update_profile(db, user, body.profile)
    return {"success": True, "message": "Profile updated successfully", "data": {"user": _user_json(user)}}


@router.post("/change-password")
def change_password(
    body: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    auth_service.change_password(db, user, body.current_password, body.new_password, body.confirm_new_password)
    return {"success": True, "message": "Password changed successfully"}


@router.post("/verify-email")
def verify_email(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    auth_service.verify_email(db, user)
    return {"success": True, "message": "Email verified successfully"}


@router.get("/stats")
def get_stats(user: User = Depends(get_current_user)):
    can_review, reviews_left = auth_service.can_user_review(user)
    stats = UserStats(
        review_limit=user.review_limit,
        usage_stats=UsageStats(total_reviews=user.total_reviews or 0, last_review_at=user.last_review_at),
        can_review=can_review,
        reviews_left=reviews_left,
    )
    return {"success": True, "data": stats.model_dump(by_alias=True, mode="json")}


@router.post("/forgot-password")
def forgot_password(body: ForgotPasswordRequest, db: Session = Depends(get_db)):
    token = auth_service.create_password_reset(db, body.email)
    response = {
        "success": True,
        "message": "If an account with that email exists, a password reset token has been generated",
    }
    # No mail delivery; outside production the token is handed back directly
    if token and settings.ENVIRONMENT != "production":
        response["resetToken"] = token
    return response


@router.post("/reset-password")
def reset_password(body: ResetPasswordRequest, db: Session = Depends(get_db)):
    auth_service.reset_password(db, body.token, body.new_password, body.confirm_new_password)
    return {"success": True, "message": "Password reset successfully"}


@router.delete("/deactivate")
def deactivate(
    token: str = Depends(get_bearer_token),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    auth_service.deactivate_user(db, user)
    token_service.revoke_token(db, token)
    return {"success": True, "message": "Account deactivated successfully"}
