"""Service layer for business logic."""

from bugtracker.services.auth import AuthService
from bugtracker.services.bug import BugService
from bugtracker.services.comment import CommentService
from bugtracker.services.stats import StatsService
from bugtracker.services.user import UserService

__all__ = [
    "AuthService",
    "BugService",
    "CommentService",
    "StatsService",
    "UserService",
]
