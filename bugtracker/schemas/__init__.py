"""Pydantic schemas for request/response validation."""

from bugtracker.schemas.auth import (
    LoginRequest,
    PasswordChangeRequest,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
)
from bugtracker.schemas.bug import (
    AttachmentCreate,
    BugCreate,
    BugDetailResponse,
    BugQueryParams,
    BugResponse,
    BugUpdate,
)
from bugtracker.schemas.comment import (
    CommentCreate,
    CommentResponse,
    CommentUpdate,
)
from bugtracker.schemas.common import (
    ErrorResponse,
    MessageResponse,
    PaginatedResponse,
    PaginationParams,
)
from bugtracker.schemas.stats import BugStatsResponse
from bugtracker.schemas.user import (
    ProfileUpdate,
    UserCreate,
    UserDetailResponse,
    UserResponse,
    UserSummary,
    UserUpdate,
)

__all__ = [
    # Auth
    "LoginRequest",
    "PasswordChangeRequest",
    "RefreshRequest",
    "RegisterRequest",
    "TokenResponse",
    # User
    "ProfileUpdate",
    "UserCreate",
    "UserDetailResponse",
    "UserResponse",
    "UserSummary",
    "UserUpdate",
    # Bug
    "AttachmentCreate",
    "BugCreate",
    "BugDetailResponse",
    "BugQueryParams",
    "BugResponse",
    "BugUpdate",
    "BugStatsResponse",
    # Comment
    "CommentCreate",
    "CommentResponse",
    "CommentUpdate",
    # Common
    "ErrorResponse",
    "MessageResponse",
    "PaginatedResponse",
    "PaginationParams",
]
