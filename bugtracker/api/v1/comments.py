"""Comment API endpoints, nested under bugs."""

import uuid

from fastapi import APIRouter, Depends

from bugtracker.api.deps import CurrentUser, DbSession, Pagination, require_permission
from bugtracker.core.permissions import Permission
from bugtracker.schemas.comment import CommentCreate, CommentResponse, CommentUpdate
from bugtracker.schemas.common import MessageResponse, PaginatedResponse
from bugtracker.services.bug import BugService
from bugtracker.services.comment import CommentService

router = APIRouter()


@router.get(
    "/{bug_id}/comments",
    response_model=PaginatedResponse[CommentResponse],
    summary="List comments on a bug",
    description="Comments oldest first. Requires view access to the bug.",
)
async def list_comments(
    bug_id: uuid.UUID,
    current_user: CurrentUser,
    db: DbSession,
    pagination: Pagination,
) -> PaginatedResponse[CommentResponse]:
    bug = await BugService(db).get_visible(bug_id, current_user)

    comments, total = await CommentService(db).list_comments(
        bug,
        offset=pagination.offset,
        limit=pagination.limit,
    )

    return PaginatedResponse.create(
        items=[CommentResponse.model_validate(c) for c in comments],
        total=total,
        page=pagination.page,
        limit=pagination.limit,
    )


@router.post(
    "/{bug_id}/comments",
    response_model=CommentResponse,
    status_code=201,
    summary="Add a comment to a bug",
    description="Reporters may only comment on bugs they reported.",
    dependencies=[Depends(require_permission(Permission.ADD_COMMENT))],
)
async def create_comment(
    bug_id: uuid.UUID,
    data: CommentCreate,
    current_user: CurrentUser,
    db: DbSession,
) -> CommentResponse:
    bug = await BugService(db).get_visible(bug_id, current_user)
    comment = await CommentService(db).create(bug, data, current_user)
    return CommentResponse.model_validate(comment)


@router.put(
    "/{bug_id}/comments/{comment_id}",
    response_model=CommentResponse,
    summary="Edit a comment",
    description="Only the author or an admin can edit a comment.",
)
async def update_comment(
    bug_id: uuid.UUID,
    comment_id: uuid.UUID,
    data: CommentUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> CommentResponse:
    bug = await BugService(db).get_visible(bug_id, current_user)
    comment_service = CommentService(db)
    comment = await comment_service.get_for_bug_or_404(bug, comment_id)

    comment = await comment_service.update(comment, data, current_user)
    return CommentResponse.model_validate(comment)


@router.delete(
    "/{bug_id}/comments/{comment_id}",
    response_model=MessageResponse,
    summary="Delete a comment",
    description="Only the author or an admin can delete a comment.",
)
async def delete_comment(
    bug_id: uuid.UUID,
    comment_id: uuid.UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> MessageResponse:
    bug = await BugService(db).get_visible(bug_id, current_user)
    comment_service = CommentService(db)
    comment = await comment_service.get_for_bug_or_404(bug, comment_id)

    await comment_service.delete(comment, current_user)
    return MessageResponse(message="Comment deleted successfully")
