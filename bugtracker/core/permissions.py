"""Role-based access control (RBAC) permission system.

Two tables drive authorization:

* ``ROLE_PERMISSIONS`` grants coarse permissions per role.
* ``BUG_FIELD_PERMISSIONS`` maps each mutable bug field to the permission
  required to change it. Bug updates apply a field only when the caller
  holds the matching permission; other fields are left untouched.
"""

from enum import Enum
from typing import Optional

from bugtracker.models.bug import BugStatus
from bugtracker.models.user import User, UserRole


class Permission(str, Enum):
    """Available permissions in the system."""

    # Bug permissions
    VIEW_BUGS = "view_bugs"
    VIEW_ALL_BUGS = "view_all_bugs"
    CREATE_BUG = "create_bug"
    EDIT_BUG = "edit_bug"
    DELETE_BUG = "delete_bug"

    # Field-level bug permissions
    CHANGE_STATUS = "change_status"
    REOPEN_BUG = "reopen_bug"
    CHANGE_CLASSIFICATION = "change_classification"
    ASSIGN_BUG = "assign_bug"
    TRACK_TIME = "track_time"
    SET_DUE_DATE = "set_due_date"

    # Comment permissions
    ADD_COMMENT = "add_comment"
    MODERATE_COMMENTS = "moderate_comments"

    # Dashboard and users
    VIEW_STATS = "view_stats"
    VIEW_DEVELOPERS = "view_developers"
    MANAGE_USERS = "manage_users"


_BASE_PERMISSIONS = {
    Permission.VIEW_BUGS,
    Permission.CREATE_BUG,
    Permission.EDIT_BUG,
    Permission.ADD_COMMENT,
    Permission.VIEW_STATS,
    Permission.VIEW_DEVELOPERS,
}

# Role to permission mapping
ROLE_PERMISSIONS: dict[UserRole, set[Permission]] = {
    UserRole.REPORTER: _BASE_PERMISSIONS | {
        Permission.CHANGE_CLASSIFICATION,
    },
    UserRole.TESTER: _BASE_PERMISSIONS | {
        Permission.VIEW_ALL_BUGS,
        Permission.REOPEN_BUG,
        Permission.CHANGE_CLASSIFICATION,
    },
    UserRole.DEVELOPER: _BASE_PERMISSIONS | {
        Permission.CHANGE_STATUS,
        Permission.REOPEN_BUG,
        Permission.ASSIGN_BUG,
        Permission.TRACK_TIME,
    },
    UserRole.ADMIN: set(Permission),  # All permissions
}

# Bug field -> permission needed to change it. Fields not listed here
# (title, description, tags) only require EDIT_BUG access to the bug.
BUG_FIELD_PERMISSIONS: dict[str, Permission] = {
    "priority": Permission.CHANGE_CLASSIFICATION,
    "category": Permission.CHANGE_CLASSIFICATION,
    "severity": Permission.CHANGE_CLASSIFICATION,
    "assigned_to_id": Permission.ASSIGN_BUG,
    "estimated_time": Permission.TRACK_TIME,
    "actual_time": Permission.TRACK_TIME,
    "due_date": Permission.SET_DUE_DATE,
}


def has_permission(user: Optional[User], permission: Permission) -> bool:
    """
    Check if a user has a specific permission.

    Args:
        user: User to check
        permission: Permission to check for

    Returns:
        True if user has the permission, False otherwise
    """
    if not user or not user.is_active:
        return False

    return permission in ROLE_PERMISSIONS.get(user.role, set())


def get_user_permissions(user: Optional[User]) -> set[Permission]:
    """Get all permissions for a user."""
    if not user or not user.is_active:
        return set()

    return ROLE_PERMISSIONS.get(user.role, set())


def can_set_status(user: User, status: BugStatus) -> bool:
    """Check if a user may move a bug to the given status.

    Testers may only reopen; developers and admins may set any status.
    """
    if has_permission(user, Permission.CHANGE_STATUS):
        return True
    return status == BugStatus.REOPENED and has_permission(user, Permission.REOPEN_BUG)


def can_set_field(user: User, field: str) -> bool:
    """Check if a user may change a (non-status) bug field."""
    required = BUG_FIELD_PERMISSIONS.get(field)
    if required is None:
        return has_permission(user, Permission.EDIT_BUG)
    return has_permission(user, required)
