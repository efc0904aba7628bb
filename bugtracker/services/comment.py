"""Comment service for bug discussions."""

import uuid
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from bugtracker.core.exceptions import AuthorizationError, NotFoundError
from bugtracker.core.permissions import Permission, has_permission
from bugtracker.middleware.audit_logger import log_data_modification, log_permission_event
from bugtracker.models.bug import Bug
from bugtracker.models.comment import Comment
from bugtracker.models.user import User
from bugtracker.schemas.comment import CommentCreate, CommentUpdate


class CommentService:
    """Service for comment operations. Callers resolve bug access first."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, comment_id: uuid.UUID) -> Optional[Comment]:
        result = await self.db.execute(
            select(Comment)
            .where(Comment.id == comment_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_for_bug_or_404(self, bug: Bug, comment_id: uuid.UUID) -> Comment:
        """Get a comment that belongs to ``bug`` or raise NotFoundError."""
        comment = await self.get_by_id(comment_id)
        if not comment or comment.bug_id != bug.id:
            raise NotFoundError(resource="Comment")
        return comment

    async def list_comments(
        self,
        bug: Bug,
        offset: int = 0,
        limit: int = 50,
    ) -> tuple[list[Comment], int]:
        """
        List comments on a bug, oldest first.

        Returns:
            Tuple of (comments list, total count)
        """
        total = await self.db.scalar(
            select(func.count(Comment.id)).where(Comment.bug_id == bug.id)
        ) or 0

        result = await self.db.execute(
            select(Comment)
            .where(Comment.bug_id == bug.id)
            .order_by(Comment.created_at.asc(), Comment.id)
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def create(self, bug: Bug, data: CommentCreate, author: User) -> Comment:
        """Add a comment to a bug the author can view."""
        comment = Comment(
            content=data.content,
            bug_id=bug.id,
            author_id=author.id,
        )

        self.db.add(comment)
        await self.db.flush()

        log_data_modification(
            action="create",
            resource="comment",
            resource_id=str(comment.id),
            user_id=str(author.id),
            changes={"bug_id": bug.id},
        )
        return await self.get_by_id(comment.id)

    async def update(self, comment: Comment, data: CommentUpdate, user: User) -> Comment:
        """Edit a comment. Author or moderator only."""
        self._ensure_can_modify(comment, user, action="update")

        comment.content = data.content
        await self.db.flush()

        log_data_modification(
            action="update",
            resource="comment",
            resource_id=str(comment.id),
            user_id=str(user.id),
        )
        return await self.get_by_id(comment.id)

    async def delete(self, comment: Comment, user: User) -> None:
        """Remove a comment. Author or moderator only."""
        self._ensure_can_modify(comment, user, action="delete")

        await self.db.delete(comment)
        await self.db.flush()

        log_data_modification(
            action="delete",
            resource="comment",
            resource_id=str(comment.id),
            user_id=str(user.id),
        )

    @staticmethod
    def can_modify(comment: Comment, user: User) -> bool:
        """Check if user can edit or remove the comment."""
        if has_permission(user, Permission.MODERATE_COMMENTS):
            return True
        return comment.author_id == user.id

    def _ensure_can_modify(self, comment: Comment, user: User, action: str) -> None:
        if self.can_modify(comment, user):
            return
        log_permission_event(
            action=action,
            resource="comment",
            resource_id=str(comment.id),
            user_id=str(user.id),
            granted=False,
            required_permission=Permission.MODERATE_COMMENTS.value,
            user_role=user.role.value,
        )
        raise AuthorizationError(
            message=f"Access denied. You can only {action} your own comments."
        )
