"""User service for user management operations."""

import uuid
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from bugtracker.core.exceptions import BusinessRuleError, ConflictError, NotFoundError, UserInUseError
from bugtracker.core.security import hash_password
from bugtracker.middleware.audit_logger import log_data_modification
from bugtracker.models.bug import Bug
from bugtracker.models.comment import Comment
from bugtracker.models.user import ASSIGNABLE_ROLES, User, UserRole
from bugtracker.schemas.user import ProfileUpdate, UserBugStats, UserCreate, UserUpdate


class UserService:
    """Service for user operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_or_404(self, user_id: uuid.UUID) -> User:
        """Get user by ID or raise NotFoundError."""
        user = await self.get_by_id(user_id)
        if not user:
            raise NotFoundError(resource="User")
        return user

    async def list_users(
        self,
        role: Optional[UserRole] = None,
        is_active: Optional[bool] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[User], int]:
        """
        List users with optional filters, newest first.

        Returns:
            Tuple of (users list, total count)
        """
        filters = []
        if role is not None:
            filters.append(User.role == role)
        if is_active is not None:
            filters.append(User.is_active == is_active)

        total = await self.db.scalar(select(func.count(User.id)).where(*filters)) or 0

        result = await self.db.execute(
            select(User)
            .where(*filters)
            .order_by(User.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def get_bug_stats(self, user: User) -> UserBugStats:
        """Per-status counts of the bugs a user reported and is assigned."""
        reported = await self.db.execute(
            select(Bug.status, func.count(Bug.id))
            .where(Bug.reported_by_id == user.id)
            .group_by(Bug.status)
        )
        assigned = await self.db.execute(
            select(Bug.status, func.count(Bug.id))
            .where(Bug.assigned_to_id == user.id)
            .group_by(Bug.status)
        )
        return UserBugStats(
            reported={status.value: count for status, count in reported.all()},
            assigned={status.value: count for status, count in assigned.all()},
        )

    async def create(self, data: UserCreate, created_by: User) -> User:
        """
        Create a user with any role.

        Raises:
            ConflictError: If the email is already registered
        """
        if await self.get_by_email(data.email):
            raise ConflictError(
                message="User already exists with this email",
                details=[{"field": "email", "message": "This email is already registered"}],
            )

        user = User(
            name=data.name,
            email=data.email,
            password_hash=hash_password(data.password),
            role=data.role,
        )

        self.db.add(user)
        await self.db.flush()
        await self.db.refresh(user)

        log_data_modification(
            action="create",
            resource="user",
            resource_id=str(user.id),
            user_id=str(created_by.id),
            changes={"email": user.email, "role": user.role},
        )
        return user

    async def update(self, user: User, data: UserUpdate, updated_by: User) -> User:
        """
        Update a user's name, email, role or active flag.

        Raises:
            ConflictError: If the new email belongs to another user
        """
        update_data = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
        await self._apply(user, update_data)

        log_data_modification(
            action="update",
            resource="user",
            resource_id=str(user.id),
            user_id=str(updated_by.id),
            changes=update_data,
        )
        return user

    async def update_profile(self, user: User, data: ProfileUpdate) -> User:
        """Let a user change their own name and email."""
        update_data = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
        await self._apply(user, update_data)

        log_data_modification(
            action="update",
            resource="profile",
            resource_id=str(user.id),
            user_id=str(user.id),
            changes=update_data,
        )
        return user

    async def delete(self, user: User, deleted_by: User) -> None:
        """
        Delete a user that nothing references any more.

        Raises:
            BusinessRuleError: If an admin deletes their own account
            UserInUseError: If the user reported or is assigned bugs, or wrote comments
        """
        if user.id == deleted_by.id:
            raise BusinessRuleError(
                message="You cannot delete your own account",
                code="CANNOT_DELETE_SELF",
            )

        reported = await self.db.scalar(
            select(func.count(Bug.id)).where(Bug.reported_by_id == user.id)
        ) or 0
        assigned = await self.db.scalar(
            select(func.count(Bug.id)).where(Bug.assigned_to_id == user.id)
        ) or 0
        comments = await self.db.scalar(
            select(func.count(Comment.id)).where(Comment.author_id == user.id)
        ) or 0

        if reported or assigned or comments:
            raise UserInUseError(reported=reported, assigned=assigned, comments=comments)

        await self.db.delete(user)
        await self.db.flush()

        log_data_modification(
            action="delete",
            resource="user",
            resource_id=str(user.id),
            user_id=str(deleted_by.id),
        )

    async def list_developers(self) -> list[User]:
        """Active users bugs can be assigned to, ordered by name."""
        result = await self.db.execute(
            select(User)
            .where(User.is_active.is_(True), User.role.in_(ASSIGNABLE_ROLES))
            .order_by(User.name)
        )
        return list(result.scalars().all())

    async def _apply(self, user: User, update_data: dict) -> None:
        if "email" in update_data and update_data["email"] != user.email:
            if await self.get_by_email(update_data["email"]):
                raise ConflictError(
                    message="Email is already in use",
                    details=[{"field": "email", "message": "This email is already registered"}],
                )

        for field, value in update_data.items():
            setattr(user, field, value)

        await self.db.flush()
        await self.db.refresh(user)
