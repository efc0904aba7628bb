"""SQLAlchemy models for the Bug Tracker."""

from bugtracker.models.attachment import Attachment
from bugtracker.models.bug import Bug, BugCategory, BugPriority, BugSeverity, BugStatus
from bugtracker.models.comment import Comment
from bugtracker.models.user import User, UserRole

__all__ = [
    "User",
    "UserRole",
    "Bug",
    "BugStatus",
    "BugPriority",
    "BugCategory",
    "BugSeverity",
    "Comment",
    "Attachment",
]
