"""Attachment metadata model."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bugtracker.database import Base
from bugtracker.models.types import GUID

if TYPE_CHECKING:
    from bugtracker.models.bug import Bug


class Attachment(Base):
    """Metadata for a file attached to a bug. File contents live elsewhere."""

    __tablename__ = "attachments"

    id: Mapped[uuid.UUID] = mapped_column(
        GUID(),
        primary_key=True,
        default=uuid.uuid4,
    )
    bug_id: Mapped[uuid.UUID] = mapped_column(
        GUID(),
        ForeignKey("bugs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    uploaded_by_id: Mapped[uuid.UUID] = mapped_column(
        GUID(),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )

    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    path: Mapped[str] = mapped_column(String(500), nullable=False)
    size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    bug: Mapped["Bug"] = relationship(
        "Bug",
        back_populates="attachments",
    )

    def __repr__(self) -> str:
        return f"<Attachment(id={self.id}, bug_id={self.bug_id}, filename={self.filename})>"
