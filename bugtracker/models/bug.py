"""Bug model definition."""

import enum
import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import JSON, Date, DateTime, Enum, Float, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bugtracker.database import Base
from bugtracker.models.types import GUID

if TYPE_CHECKING:
    from bugtracker.models.attachment import Attachment
    from bugtracker.models.comment import Comment
    from bugtracker.models.user import User


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [e.value for e in enum_cls]


class BugStatus(str, enum.Enum):
    """Bug status enumeration."""

    OPEN = "open"
    IN_PROGRESS = "in-progress"
    TESTING = "testing"
    CLOSED = "closed"
    REOPENED = "reopened"


class BugPriority(str, enum.Enum):
    """Bug priority enumeration."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class BugCategory(str, enum.Enum):
    """Bug category enumeration."""

    FRONTEND = "frontend"
    BACKEND = "backend"
    DATABASE = "database"
    UI_UX = "ui-ux"
    PERFORMANCE = "performance"
    SECURITY = "security"
    OTHER = "other"


class BugSeverity(str, enum.Enum):
    """Bug severity enumeration."""

    MINOR = "minor"
    MAJOR = "major"
    CRITICAL = "critical"
    BLOCKER = "blocker"


class Bug(Base):
    """Bug model for defect tracking."""

    __tablename__ = "bugs"

    # Primary key
    id: Mapped[uuid.UUID] = mapped_column(
        GUID(),
        primary_key=True,
        default=uuid.uuid4,
        index=True,
    )

    # Basic fields
    title: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
    )
    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    # Classification
    status: Mapped[BugStatus] = mapped_column(
        Enum(BugStatus, name="bug_status", values_callable=_enum_values),
        nullable=False,
        default=BugStatus.OPEN,
        index=True,
    )
    priority: Mapped[BugPriority] = mapped_column(
        Enum(BugPriority, name="bug_priority", values_callable=_enum_values),
        nullable=False,
        default=BugPriority.MEDIUM,
        index=True,
    )
    category: Mapped[BugCategory] = mapped_column(
        Enum(BugCategory, name="bug_category", values_callable=_enum_values),
        nullable=False,
        default=BugCategory.OTHER,
    )
    severity: Mapped[BugSeverity] = mapped_column(
        Enum(BugSeverity, name="bug_severity", values_callable=_enum_values),
        nullable=False,
        default=BugSeverity.MINOR,
    )

    # Reporter reference (restrict on delete - a bug always has a reporter)
    reported_by_id: Mapped[uuid.UUID] = mapped_column(
        GUID(),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # Assignee reference
    assigned_to_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        GUID(),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )

    tags: Mapped[list[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
    )

    # Time tracking (hours)
    estimated_time: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    actual_time: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    due_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    # Relationships
    reporter: Mapped["User"] = relationship(
        "User",
        lazy="selectin",
        foreign_keys=[reported_by_id],
    )
    assignee: Mapped[Optional["User"]] = relationship(
        "User",
        lazy="selectin",
        foreign_keys=[assigned_to_id],
    )
    comments: Mapped[list["Comment"]] = relationship(
        "Comment",
        back_populates="bug",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="Comment.created_at",
    )
    attachments: Mapped[list["Attachment"]] = relationship(
        "Attachment",
        back_populates="bug",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="Attachment.uploaded_at",
    )

    def __repr__(self) -> str:
        return f"<Bug(id={self.id}, title={self.title}, status={self.status})>"

    @property
    def comment_count(self) -> int:
        """Get the total number of comments on the bug."""
        return len(self.comments) if self.comments else 0

    def is_reported_by(self, user: "User") -> bool:
        return self.reported_by_id == user.id

    def is_assigned_to(self, user: "User") -> bool:
        return self.assigned_to_id is not None and self.assigned_to_id == user.id
