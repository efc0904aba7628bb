"""Comment model definition."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bugtracker.database import Base
from bugtracker.models.types import GUID

if TYPE_CHECKING:
    from bugtracker.models.bug import Bug
    from bugtracker.models.user import User


class Comment(Base):
    """Comment model for bug discussions."""

    __tablename__ = "comments"

    # Primary key
    id: Mapped[uuid.UUID] = mapped_column(
        GUID(),
        primary_key=True,
        default=uuid.uuid4,
        index=True,
    )

    # Content (required, max 500 chars enforced at schema level)
    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    # Bug reference (cascade on delete)
    bug_id: Mapped[uuid.UUID] = mapped_column(
        GUID(),
        ForeignKey("bugs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Author reference (restrict on delete - prevents user deletion if they authored comments)
    author_id: Mapped[uuid.UUID] = mapped_column(
        GUID(),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    # Relationships
    bug: Mapped["Bug"] = relationship(
        "Bug",
        back_populates="comments",
    )
    author: Mapped["User"] = relationship(
        "User",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Comment(id={self.id}, bug_id={self.bug_id}, author_id={self.author_id})>"

    @property
    def is_edited(self) -> bool:
        """Check if the comment has been edited."""
        # Allow for small time differences due to database precision
        if self.updated_at and self.created_at:
            diff = (self.updated_at - self.created_at).total_seconds()
            return diff > 1
        return False
