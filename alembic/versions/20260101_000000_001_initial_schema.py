"""Initial schema - users, bugs, comments and attachments.

Revision ID: 001
Revises: None
Create Date: 2026-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ENUMS = {
    "user_role": ("admin", "developer", "tester", "reporter"),
    "bug_status": ("open", "in-progress", "testing", "closed", "reopened"),
    "bug_priority": ("low", "medium", "high", "critical"),
    "bug_category": ("frontend", "backend", "database", "ui-ux", "performance", "security", "other"),
    "bug_severity": ("minor", "major", "critical", "blocker"),
}


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def upgrade() -> None:
    """Create all database tables."""
    bind = op.get_bind()
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", _enum("user_role"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        sa.Column("failed_login_attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("locked_until", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "bugs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("status", _enum("bug_status"), nullable=False),
        sa.Column("priority", _enum("bug_priority"), nullable=False),
        sa.Column("category", _enum("bug_category"), nullable=False),
        sa.Column("severity", _enum("bug_severity"), nullable=False),
        sa.Column("reported_by_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("assigned_to_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("estimated_time", sa.Float(), nullable=True),
        sa.Column("actual_time", sa.Float(), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["reported_by_id"], ["users.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["assigned_to_id"], ["users.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_bugs_id", "bugs", ["id"])
    op.create_index("ix_bugs_title", "bugs", ["title"])
    op.create_index("ix_bugs_status", "bugs", ["status"])
    op.create_index("ix_bugs_priority", "bugs", ["priority"])
    op.create_index("ix_bugs_reported_by_id", "bugs", ["reported_by_id"])
    op.create_index("ix_bugs_assigned_to_id", "bugs", ["assigned_to_id"])
    op.create_index("ix_bugs_created_at", "bugs", ["created_at"])

    op.create_table(
        "comments",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("bug_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("author_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["bug_id"], ["bugs.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["author_id"], ["users.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_comments_id", "comments", ["id"])
    op.create_index("ix_comments_bug_id", "comments", ["bug_id"])
    op.create_index("ix_comments_author_id", "comments", ["author_id"])

    op.create_table(
        "attachments",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("bug_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("uploaded_by_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("filename", sa.String(255), nullable=False),
        sa.Column("original_name", sa.String(255), nullable=False),
        sa.Column("path", sa.String(500), nullable=False),
        sa.Column("size", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["bug_id"], ["bugs.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["uploaded_by_id"], ["users.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_attachments_bug_id", "attachments", ["bug_id"])


def downgrade() -> None:
    """Drop all database tables."""
    # Reverse order so foreign keys are dropped first
    op.drop_index("ix_attachments_bug_id", "attachments")
    op.drop_table("attachments")

    op.drop_index("ix_comments_author_id", "comments")
    op.drop_index("ix_comments_bug_id", "comments")
    op.drop_index("ix_comments_id", "comments")
    op.drop_table("comments")

    for index in (
        "ix_bugs_created_at",
        "ix_bugs_assigned_to_id",
        "ix_bugs_reported_by_id",
        "ix_bugs_priority",
        "ix_bugs_status",
        "ix_bugs_title",
        "ix_bugs_id",
    ):
        op.drop_index(index, "bugs")
    op.drop_table("bugs")

    op.drop_index("ix_users_role", "users")
    op.drop_index("ix_users_email", "users")
    op.drop_index("ix_users_id", "users")
    op.drop_table("users")

    bind = op.get_bind()
    for name in reversed(list(ENUMS)):
        postgresql.ENUM(name=name).drop(bind, checkfirst=True)
