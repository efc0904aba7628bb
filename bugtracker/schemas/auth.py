"""Authentication schemas."""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from bugtracker.models.user import UserRole
from bugtracker.schemas.user import UserBase, UserResponse, validate_password_complexity

# Roles a user may pick when signing up; admins are created by admins.
SELF_REGISTER_ROLES = (UserRole.DEVELOPER, UserRole.TESTER, UserRole.REPORTER)


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class RegisterRequest(UserBase):
    """User registration request schema."""

    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="Password (min 8 chars, must include uppercase, lowercase, digit, and special char)",
    )
    role: UserRole = Field(
        default=UserRole.REPORTER,
        description="User role (admin accounts cannot self-register)",
    )

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        return validate_password_complexity(v)

    @field_validator("role")
    @classmethod
    def check_role(cls, v: UserRole) -> UserRole:
        if v not in SELF_REGISTER_ROLES:
            raise ValueError("Admin accounts cannot be self-registered")
        return v


class RefreshRequest(BaseModel):
    """Token refresh request schema."""

    refresh_token: str = Field(..., min_length=1)


class LogoutRequest(BaseModel):
    """Logout request schema."""

    refresh_token: Optional[str] = None


class TokenResponse(BaseModel):
    """Token response schema."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Access token expiry in seconds")
    user: UserResponse


class PasswordChangeRequest(BaseModel):
    """Password change request schema."""

    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="New password (min 8 chars, must include uppercase, lowercase, digit, and special char)",
    )

    @field_validator("new_password")
    @classmethod
    def check_password(cls, v: str) -> str:
        return validate_password_complexity(v)


class CurrentUserResponse(UserResponse):
    """Current user profile with effective permissions."""

    permissions: list[str] = Field(default_factory=list)
