"""User schemas for request/response validation."""

import re
import uuid
from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from bugtracker.models.user import UserRole
from bugtracker.schemas.common import BaseSchema


def validate_password_complexity(v: str) -> str:
    """Validate password complexity requirements."""
    if not re.search(r"[A-Z]", v):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", v):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"\d", v):
        raise ValueError("Password must contain at least one digit")
    if not re.search(r"[!@#$%^&*(),.?\":{}|<>_\-]", v):
        raise ValueError("Password must contain at least one special character")
    return v


class UserBase(BaseSchema):
    """Base user schema."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Display name",
    )
    email: EmailStr = Field(..., description="Valid email address")

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class UserCreate(UserBase):
    """Schema for an admin creating a user with any role."""

    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="Password (min 8 chars, must include uppercase, lowercase, digit, and special char)",
    )
    role: UserRole = Field(
        default=UserRole.REPORTER,
        description="User role",
    )

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        return validate_password_complexity(v)


class UserUpdate(BaseSchema):
    """Schema for an admin updating a user."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v


class ProfileUpdate(BaseSchema):
    """Schema for users updating their own profile."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v


class UserResponse(BaseSchema):
    """Schema for user response."""

    id: uuid.UUID
    name: str
    email: str
    role: UserRole
    is_active: bool
    created_at: datetime
    last_login: Optional[datetime] = None


class UserSummary(BaseSchema):
    """Minimal user summary for embedding in other responses."""

    id: uuid.UUID
    name: str
    email: str
    role: UserRole


class UserBugStats(BaseSchema):
    """Bug counts by status for a single user."""

    reported: dict[str, int] = Field(default_factory=dict)
    assigned: dict[str, int] = Field(default_factory=dict)


class UserDetailResponse(UserResponse):
    """User with their bug statistics."""

    bug_stats: UserBugStats
