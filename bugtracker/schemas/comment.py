"""Comment schemas for request/response validation."""

import uuid
from datetime import datetime

from pydantic import Field, field_validator

from bugtracker.schemas.common import BaseSchema
from bugtracker.schemas.user import UserSummary
from bugtracker.utils.markdown_sanitizer import sanitize_markdown

COMMENT_MAX_LENGTH = 500


class CommentCreate(BaseSchema):
    """Schema for adding a comment to a bug."""

    content: str = Field(
        ...,
        min_length=1,
        max_length=COMMENT_MAX_LENGTH,
        description="Comment content (required, max 500 chars)",
    )

    @field_validator("content")
    @classmethod
    def sanitize_content(cls, v: str) -> str:
        """Sanitize comment content to prevent XSS."""
        v = sanitize_markdown(v).strip()
        if not v:
            raise ValueError("Comment content is required")
        if len(v) > COMMENT_MAX_LENGTH:
            raise ValueError(f"Comment cannot exceed {COMMENT_MAX_LENGTH} characters")
        return v


class CommentUpdate(CommentCreate):
    """Schema for editing a comment. Author or admin only."""


class CommentResponse(BaseSchema):
    """Schema for comment response."""

    id: uuid.UUID
    content: str
    bug_id: uuid.UUID
    author: UserSummary
    created_at: datetime
    updated_at: datetime
    is_edited: bool = Field(default=False, description="Whether the comment has been edited")
