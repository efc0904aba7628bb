"""Bug schemas for request/response validation."""

import uuid
from datetime import date, datetime
from typing import Literal, Optional

from pydantic import Field, field_validator

from bugtracker.models.bug import BugCategory, BugPriority, BugSeverity, BugStatus
from bugtracker.schemas.comment import CommentResponse
from bugtracker.schemas.common import BaseSchema
from bugtracker.schemas.user import UserSummary
from bugtracker.utils.markdown_sanitizer import sanitize_markdown, strip_all_html
from bugtracker.utils.validators import normalize_tags

# Fields whose explicit ``null`` in an update clears the stored value.
# For all other fields ``null`` means "leave unchanged".
NULLABLE_UPDATE_FIELDS = frozenset(
    {"assigned_to_id", "estimated_time", "actual_time", "due_date"}
)

TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 1000

BugSort = Literal[
    "title", "-title",
    "created_at", "-created_at",
    "updated_at", "-updated_at",
    "priority", "-priority",
    "status", "-status",
    "due_date", "-due_date",
]


class _BugTextMixin(BaseSchema):
    """Shared sanitizers for free-text bug fields."""

    @field_validator("title", check_fields=False)
    @classmethod
    def clean_title(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = strip_all_html(v).strip()
        if not v:
            raise ValueError("Bug title is required")
        if len(v) > TITLE_MAX_LENGTH:
            raise ValueError(f"Bug title cannot exceed {TITLE_MAX_LENGTH} characters")
        return v

    @field_validator("description", check_fields=False)
    @classmethod
    def clean_description(cls, v: Optional[str]) -> Optional[str]:
        """Sanitize markdown description to prevent XSS."""
        if v is None:
            return None
        v = sanitize_markdown(v).strip()
        if not v:
            raise ValueError("Bug description is required")
        # Escaped entities count toward the limit
        if len(v) > DESCRIPTION_MAX_LENGTH:
            raise ValueError(
                f"Bug description cannot exceed {DESCRIPTION_MAX_LENGTH} characters"
            )
        return v

    @field_validator("tags", check_fields=False)
    @classmethod
    def clean_tags(cls, v: Optional[list[str]]) -> Optional[list[str]]:
        if v is None:
            return None
        return normalize_tags(strip_all_html(tag) for tag in v)


class BugCreate(_BugTextMixin):
    """Schema for reporting a new bug."""

    title: str = Field(
        ...,
        min_length=1,
        max_length=TITLE_MAX_LENGTH,
        description="Bug title",
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=DESCRIPTION_MAX_LENGTH,
        description="Bug description (markdown supported, max 1000 chars)",
    )
    priority: BugPriority = BugPriority.MEDIUM
    category: BugCategory = BugCategory.OTHER
    severity: BugSeverity = BugSeverity.MINOR
    tags: list[str] = Field(default_factory=list)
    estimated_time: Optional[float] = Field(default=None, ge=0, description="Hours")
    due_date: Optional[date] = None
    assigned_to_id: Optional[uuid.UUID] = Field(
        default=None,
        description="Assignee (developer or admin); requires assign permission",
    )


class BugUpdate(_BugTextMixin):
    """Schema for updating a bug.

    Every field is optional. Fields the caller's role may not change are
    ignored rather than rejected.
    """

    title: Optional[str] = Field(default=None, min_length=1, max_length=TITLE_MAX_LENGTH)
    description: Optional[str] = Field(default=None, min_length=1, max_length=DESCRIPTION_MAX_LENGTH)
    status: Optional[BugStatus] = None
    priority: Optional[BugPriority] = None
    category: Optional[BugCategory] = None
    severity: Optional[BugSeverity] = None
    assigned_to_id: Optional[uuid.UUID] = None
    tags: Optional[list[str]] = None
    estimated_time: Optional[float] = Field(default=None, ge=0)
    actual_time: Optional[float] = Field(default=None, ge=0)
    due_date: Optional[date] = None

    def changes(self) -> dict:
        """Fields supplied by the client, minus meaningless nulls."""
        return {
            field: value
            for field, value in self.model_dump(exclude_unset=True).items()
            if value is not None or field in NULLABLE_UPDATE_FIELDS
        }


class AttachmentCreate(BaseSchema):
    """Metadata for a file already stored by the client or a file service."""

    original_name: str = Field(..., min_length=1, max_length=255)
    path: str = Field(..., min_length=1, max_length=500)
    size: int = Field(..., ge=0, le=50 * 1024 * 1024, description="Size in bytes")


class AttachmentResponse(BaseSchema):
    """Schema for attachment metadata response."""

    id: uuid.UUID
    filename: str
    original_name: str
    path: str
    size: int
    uploaded_by_id: uuid.UUID
    uploaded_at: datetime


class BugResponse(BaseSchema):
    """Schema for bug response in lists."""

    id: uuid.UUID
    title: str
    description: str
    status: BugStatus
    priority: BugPriority
    category: BugCategory
    severity: BugSeverity
    reporter: UserSummary
    assignee: Optional[UserSummary] = None
    tags: list[str] = Field(default_factory=list)
    estimated_time: Optional[float] = None
    actual_time: Optional[float] = None
    due_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime
    comment_count: int = Field(default=0, description="Number of comments")


class BugDetailResponse(BugResponse):
    """Bug with its comments and attachments."""

    comments: list[CommentResponse] = Field(default_factory=list)
    attachments: list[AttachmentResponse] = Field(default_factory=list)


class BugQueryParams(BaseSchema):
    """Query parameters for bug list endpoint."""

    status: Optional[BugStatus] = None
    priority: Optional[BugPriority] = None
    category: Optional[BugCategory] = None
    severity: Optional[BugSeverity] = None
    assigned_to: Optional[uuid.UUID] = Field(default=None, description="Filter by assignee ID")
    reported_by: Optional[uuid.UUID] = Field(default=None, description="Filter by reporter ID")
    search: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Search in bug title and description",
    )
    sort: BugSort = Field(
        default="-created_at",
        description="Sort order (prefix with - for descending)",
    )

    @field_validator("search")
    @classmethod
    def sanitize_search(cls, v: Optional[str]) -> Optional[str]:
        """Sanitize search input."""
        if v is None:
            return None
        v = v.strip()[:100]
        return "".join(c for c in v if c.isalnum() or c in " -_") or None
