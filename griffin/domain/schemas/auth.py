"""Pydantic schemas for User and Auth."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Profile(CamelModel):
    name: Optional[str] = None
    avatar: Optional[str] = None
    bio: Optional[str] = None


class RegisterRequest(CamelModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    profile: Optional[Profile] = None


class LoginRequest(CamelModel):
    email: str
    password: str


class ProfileUpdate(CamelModel):
    profile: Profile


class ChangePasswordRequest(CamelModel):
    current_password: str
    new_password: str
    confirm_new_password: str


class ForgotPasswordRequest(CamelModel):
    email: str


class ResetPasswordRequest(CamelModel):
    token: str
    new_password: str
    confirm_new_password: str


class UsageStats(CamelModel):
    total_reviews: int = 0
    last_review_at: Optional[datetime] = None


class UserRead(CamelModel):
    """Outward view of a user. Never carries the password hash."""

    id: int
    username: str
    email: str
    profile: Profile
    is_verified: bool
    is_active: bool
    review_limit: int
    usage_stats: UsageStats
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def _from_orm_user(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return data
        return {
            "id": data.id,
            "username": data.username,
            "email": data.email,
            "profile": {
                "name": data.profile_name,
                "avatar": data.profile_avatar,
                "bio": data.profile_bio,
            },
            "is_verified": bool(data.is_verified),
            "is_active": bool(data.is_active),
            "review_limit": data.review_limit,
            "usage_stats": {
                "total_reviews": data.total_reviews or 0,
                "last_review_at": data.last_review_at,
            },
            "last_login_at": data.last_login_at,
            "created_at": data.created_at,
        }


class UserStats(CamelModel):
    review_limit: int
    usage_stats: UsageStats
    can_review: bool
    reviews_left: int
