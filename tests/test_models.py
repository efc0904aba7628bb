"""Tests for database models."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

from bugtracker.models.bug import Bug, BugPriority, BugStatus
from bugtracker.models.user import User, UserRole


def _user(role: UserRole = UserRole.DEVELOPER, **kwargs) -> User:
    return User(
        id=uuid4(),
        name="Someone",
        email="someone@example.com",
        password_hash="hash",
        role=role,
        **kwargs,
    )


class TestUserModel:
    """Tests for User model."""

    def test_user_role_values(self):
        assert [role.value for role in UserRole] == ["admin", "developer", "tester", "reporter"]

    def test_user_is_admin(self):
        assert _user(UserRole.ADMIN).is_admin
        assert not _user(UserRole.TESTER).is_admin

    def test_can_be_assigned(self):
        assert _user(UserRole.DEVELOPER, is_active=True).can_be_assigned
        assert _user(UserRole.ADMIN, is_active=True).can_be_assigned
        assert not _user(UserRole.TESTER, is_active=True).can_be_assigned
        assert not _user(UserRole.DEVELOPER, is_active=False).can_be_assigned

    def test_is_locked(self):
        """Lock expires once locked_until passes."""
        now = datetime.now(timezone.utc)

        assert not _user().is_locked
        assert _user(locked_until=now + timedelta(minutes=5)).is_locked
        assert not _user(locked_until=now - timedelta(minutes=5)).is_locked

    def test_is_locked_with_naive_timestamp(self):
        # SQLite hands back naive datetimes
        future = datetime.now() + timedelta(minutes=5)

        assert _user(locked_until=future).is_locked


class TestBugModel:
    """Tests for Bug model."""

    def test_status_values(self):
        assert [s.value for s in BugStatus] == ["open", "in-progress", "testing", "closed", "reopened"]

    def test_priority_order(self):
        assert list(BugPriority) == [
            BugPriority.LOW,
            BugPriority.MEDIUM,
            BugPriority.HIGH,
            BugPriority.CRITICAL,
        ]

    def test_ownership_helpers(self):
        reporter = _user(UserRole.REPORTER)
        developer = _user(UserRole.DEVELOPER)
        bug = Bug(reported_by_id=reporter.id, assigned_to_id=developer.id)

        assert bug.is_reported_by(reporter)
        assert not bug.is_reported_by(developer)
        assert bug.is_assigned_to(developer)
        assert not Bug(reported_by_id=reporter.id).is_assigned_to(developer)

    def test_comment_count_without_comments(self):
        assert Bug().comment_count == 0
