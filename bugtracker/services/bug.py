"""Bug service: role-scoped listing and role-gated mutation of bugs."""

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import ColumnElement, case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from bugtracker.core.exceptions import (
    AuthorizationError,
    BusinessRuleError,
    InvalidAssigneeError,
    NotFoundError,
)
from bugtracker.core.permissions import (
    BUG_FIELD_PERMISSIONS,
    Permission,
    can_set_field,
    can_set_status,
    has_permission,
)
from bugtracker.middleware.audit_logger import log_data_modification, log_permission_event
from bugtracker.models.attachment import Attachment
from bugtracker.models.bug import Bug, BugPriority, BugStatus
from bugtracker.models.user import User, UserRole
from bugtracker.schemas.bug import AttachmentCreate, BugCreate, BugQueryParams, BugUpdate
from bugtracker.utils.validators import sanitize_filename, validate_path_traversal

# Optional fields on creation that still need the matching field permission.
# Classification is free on creation; every reporter picks one.
CREATE_GATED_FIELDS = ("assigned_to_id", "estimated_time", "due_date")

_PRIORITY_ORDER = case(
    {priority: rank for rank, priority in enumerate(BugPriority)},
    value=Bug.priority,
)
_STATUS_ORDER = case(
    {status: rank for rank, status in enumerate(BugStatus)},
    value=Bug.status,
)

SORT_COLUMNS = {
    "title": Bug.title,
    "created_at": Bug.created_at,
    "updated_at": Bug.updated_at,
    "priority": _PRIORITY_ORDER,
    "status": _STATUS_ORDER,
    "due_date": Bug.due_date,
}


class BugService:
    """Service for bug operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, bug_id: uuid.UUID) -> Optional[Bug]:
        """Load a bug with reporter, assignee, comments and attachments."""
        result = await self.db.execute(
            select(Bug)
            .where(Bug.id == bug_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_or_404(self, bug_id: uuid.UUID) -> Bug:
        """Get bug by ID or raise NotFoundError."""
        bug = await self.get_by_id(bug_id)
        if not bug:
            raise NotFoundError(resource="Bug")
        return bug

    async def get_visible(self, bug_id: uuid.UUID, user: User) -> Bug:
        """
        Get a bug the user is allowed to view.

        Raises:
            NotFoundError: If the bug does not exist
            AuthorizationError: If a reporter asks for someone else's bug
        """
        bug = await self.get_or_404(bug_id)
        if not self.can_view(bug, user):
            log_permission_event(
                action="view",
                resource="bug",
                resource_id=str(bug.id),
                user_id=str(user.id),
                granted=False,
                required_permission=Permission.VIEW_ALL_BUGS.value,
                user_role=user.role.value,
            )
            raise AuthorizationError(
                message="Access denied. You can only view bugs you reported."
            )
        return bug

    async def list_bugs(
        self,
        user: User,
        params: BugQueryParams,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[Bug], int]:
        """
        List the bugs visible to ``user`` with filters and pagination.

        Returns:
            Tuple of (bugs list, total count)
        """
        filters: list[ColumnElement[bool]] = []

        visibility = self._visibility_filter(user)
        if visibility is not None:
            filters.append(visibility)

        if params.status is not None:
            filters.append(Bug.status == params.status)
        if params.priority is not None:
            filters.append(Bug.priority == params.priority)
        if params.category is not None:
            filters.append(Bug.category == params.category)
        if params.severity is not None:
            filters.append(Bug.severity == params.severity)
        if params.assigned_to is not None:
            filters.append(Bug.assigned_to_id == params.assigned_to)
        # Reporters are already pinned to their own bugs
        if params.reported_by is not None and user.role != UserRole.REPORTER:
            filters.append(Bug.reported_by_id == params.reported_by)
        if params.search:
            search_term = f"%{params.search}%"
            filters.append(
                or_(
                    Bug.title.ilike(search_term),
                    Bug.description.ilike(search_term),
                )
            )

        total = await self.db.scalar(select(func.count(Bug.id)).where(*filters)) or 0

        sort_column = SORT_COLUMNS.get(params.sort.lstrip("-"), Bug.created_at)
        order = sort_column.desc() if params.sort.startswith("-") else sort_column.asc()

        result = await self.db.execute(
            select(Bug)
            .where(*filters)
            .order_by(order, Bug.id)
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def create(self, data: BugCreate, reporter: User) -> Bug:
        """Report a new bug. The bug always starts out open."""
        values = data.model_dump(exclude=set(CREATE_GATED_FIELDS))
        for field in CREATE_GATED_FIELDS:
            value = getattr(data, field)
            if value is None:
                continue
            if not self._check_field(reporter, field, action="create"):
                continue
            if field == "assigned_to_id":
                await self._validate_assignee(value)
            values[field] = value

        bug = Bug(**values, status=BugStatus.OPEN, reported_by_id=reporter.id)
        self.db.add(bug)
        await self.db.flush()

        log_data_modification(
            action="create",
            resource="bug",
            resource_id=str(bug.id),
            user_id=str(reporter.id),
            changes={"title": bug.title, "priority": bug.priority},
        )
        return await self.get_or_404(bug.id)

    async def update(self, bug_id: uuid.UUID, data: BugUpdate, user: User) -> Bug:
        """
        Apply the subset of ``data`` the user's role may change.

        Fields the role may not touch are dropped and logged rather than
        rejected, so one request can mix allowed and forbidden fields.

        Raises:
            NotFoundError: If the bug does not exist
            AuthorizationError: If the user may not edit this bug at all
            InvalidAssigneeError: If the new assignee is not an active developer or admin
        """
        bug = await self.get_or_404(bug_id)
        self._ensure_can_edit(bug, user)

        applied: dict[str, Any] = {}
        for field, value in data.changes().items():
            if field == "status":
                if not can_set_status(user, value):
                    self._log_denied(user, field, bug, self._status_permission(value))
                    continue
            elif not self._check_field(user, field, action="update", bug=bug):
                continue

            if field == "assigned_to_id" and value is not None:
                await self._validate_assignee(value)
            applied[field] = value

        for field, value in applied.items():
            setattr(bug, field, value)

        if applied:
            await self.db.flush()
            log_data_modification(
                action="update",
                resource="bug",
                resource_id=str(bug.id),
                user_id=str(user.id),
                changes=applied,
            )

        return await self.get_or_404(bug.id)

    async def delete(self, bug_id: uuid.UUID, user: User) -> None:
        """Delete a bug together with its comments and attachments."""
        bug = await self.get_or_404(bug_id)

        await self.db.delete(bug)
        await self.db.flush()

        log_data_modification(
            action="delete",
            resource="bug",
            resource_id=str(bug_id),
            user_id=str(user.id),
        )

    async def add_attachment(
        self, bug_id: uuid.UUID, data: AttachmentCreate, user: User
    ) -> Attachment:
        """
        Record attachment metadata on a bug the user may edit.

        Raises:
            BusinessRuleError: If the stored path escapes the upload area
        """
        bug = await self.get_or_404(bug_id)
        self._ensure_can_edit(bug, user)

        if not validate_path_traversal(data.path) or not validate_path_traversal(data.original_name):
            raise BusinessRuleError(
                message="Invalid attachment path",
                code="INVALID_PATH",
                details=[{"field": "path", "message": "Path traversal is not allowed"}],
            )

        timestamp = int(datetime.now(timezone.utc).timestamp() * 1000)
        attachment = Attachment(
            bug_id=bug.id,
            uploaded_by_id=user.id,
            filename=f"{timestamp}-{sanitize_filename(data.original_name)}",
            original_name=data.original_name,
            path=data.path,
            size=data.size,
        )
        self.db.add(attachment)
        await self.db.flush()
        await self.db.refresh(attachment)

        log_data_modification(
            action="create",
            resource="attachment",
            resource_id=str(attachment.id),
            user_id=str(user.id),
            changes={"bug_id": bug.id, "filename": attachment.filename},
        )
        return attachment

    @staticmethod
    def can_view(bug: Bug, user: User) -> bool:
        """Reporters may open only their own bugs; other roles may open any."""
        if user.role == UserRole.REPORTER:
            return bug.is_reported_by(user)
        return has_permission(user, Permission.VIEW_BUGS)

    def _ensure_can_edit(self, bug: Bug, user: User) -> None:
        if user.role == UserRole.REPORTER and not bug.is_reported_by(user):
            raise AuthorizationError(
                message="Access denied. You can only update bugs you reported."
            )
        if user.role == UserRole.DEVELOPER and not (
            bug.is_assigned_to(user) or bug.is_reported_by(user)
        ):
            raise AuthorizationError(
                message="Access denied. You can only update bugs assigned to you or reported by you."
            )
        if not has_permission(user, Permission.EDIT_BUG):
            raise AuthorizationError()

    @staticmethod
    def _visibility_filter(user: User) -> Optional[ColumnElement[bool]]:
        if has_permission(user, Permission.VIEW_ALL_BUGS):
            return None
        if user.role == UserRole.DEVELOPER:
            return or_(
                Bug.assigned_to_id == user.id,
                Bug.assigned_to_id.is_(None),
                Bug.reported_by_id == user.id,
            )
        return Bug.reported_by_id == user.id

    def _check_field(
        self, user: User, field: str, action: str, bug: Optional[Bug] = None
    ) -> bool:
        if can_set_field(user, field):
            return True
        required = BUG_FIELD_PERMISSIONS.get(field, Permission.EDIT_BUG)
        self._log_denied(user, field, bug, required, action=action)
        return False

    @staticmethod
    def _status_permission(status: BugStatus) -> Permission:
        if status == BugStatus.REOPENED:
            return Permission.REOPEN_BUG
        return Permission.CHANGE_STATUS

    @staticmethod
    def _log_denied(
        user: User,
        field: str,
        bug: Optional[Bug],
        required: Permission,
        action: str = "update",
    ) -> None:
        log_permission_event(
            action=f"{action}:{field}",
            resource="bug",
            resource_id=str(bug.id) if bug else None,
            user_id=str(user.id),
            granted=False,
            required_permission=required.value,
            user_role=user.role.value,
        )

    async def _validate_assignee(self, assignee_id: uuid.UUID) -> None:
        assignee = await self.db.get(User, assignee_id)
        if not assignee or not assignee.can_be_assigned:
            raise InvalidAssigneeError(str(assignee_id))
