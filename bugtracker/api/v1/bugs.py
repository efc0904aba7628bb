"""Bug API endpoints."""

import uuid
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from bugtracker.api.deps import CurrentUser, DbSession, Pagination, require_permission
from bugtracker.core.permissions import Permission
from bugtracker.models.bug import BugCategory, BugPriority, BugSeverity, BugStatus
from bugtracker.schemas.bug import (
    AttachmentCreate,
    AttachmentResponse,
    BugCreate,
    BugDetailResponse,
    BugQueryParams,
    BugResponse,
    BugSort,
    BugUpdate,
)
from bugtracker.schemas.common import MessageResponse, PaginatedResponse
from bugtracker.schemas.stats import BugStatsResponse
from bugtracker.services.bug import BugService
from bugtracker.services.stats import StatsService

router = APIRouter()


@router.get(
    "",
    response_model=PaginatedResponse[BugResponse],
    summary="List bugs",
    description=(
        "Paginated bug list with filters. Reporters only see bugs they reported; "
        "developers see bugs assigned to them, unassigned bugs and their own reports."
    ),
)
async def list_bugs(
    current_user: CurrentUser,
    db: DbSession,
    pagination: Pagination,
    status: Annotated[Optional[BugStatus], Query()] = None,
    priority: Annotated[Optional[BugPriority], Query()] = None,
    category: Annotated[Optional[BugCategory], Query()] = None,
    severity: Annotated[Optional[BugSeverity], Query()] = None,
    assigned_to: Annotated[Optional[uuid.UUID], Query()] = None,
    reported_by: Annotated[Optional[uuid.UUID], Query()] = None,
    search: Annotated[Optional[str], Query(max_length=100)] = None,
    sort: Annotated[BugSort, Query()] = "-created_at",
) -> PaginatedResponse[BugResponse]:
    params = BugQueryParams(
        status=status,
        priority=priority,
        category=category,
        severity=severity,
        assigned_to=assigned_to,
        reported_by=reported_by,
        search=search,
        sort=sort,
    )

    bugs, total = await BugService(db).list_bugs(
        current_user,
        params,
        offset=pagination.offset,
        limit=pagination.limit,
    )

    return PaginatedResponse.create(
        items=[BugResponse.model_validate(bug) for bug in bugs],
        total=total,
        page=pagination.page,
        limit=pagination.limit,
    )


@router.post(
    "",
    response_model=BugDetailResponse,
    status_code=201,
    summary="Report a new bug",
    dependencies=[Depends(require_permission(Permission.CREATE_BUG))],
)
async def create_bug(
    data: BugCreate,
    current_user: CurrentUser,
    db: DbSession,
) -> BugDetailResponse:
    bug = await BugService(db).create(data, current_user)
    return BugDetailResponse.model_validate(bug)


# Declared before /{bug_id} so "stats" is not parsed as an ID
@router.get(
    "/stats",
    response_model=BugStatsResponse,
    summary="Dashboard statistics",
    description="Bug counts by status, priority, category and severity across all bugs.",
    dependencies=[Depends(require_permission(Permission.VIEW_STATS))],
)
async def get_stats(db: DbSession) -> BugStatsResponse:
    return await StatsService(db).get_stats()


@router.get(
    "/{bug_id}",
    response_model=BugDetailResponse,
    summary="Get bug details",
    description="Bug with its comments and attachments. Reporters may only open their own bugs.",
)
async def get_bug(
    bug_id: uuid.UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> BugDetailResponse:
    bug = await BugService(db).get_visible(bug_id, current_user)
    return BugDetailResponse.model_validate(bug)


@router.api_route(
    "/{bug_id}",
    methods=["PUT", "PATCH"],
    response_model=BugDetailResponse,
    summary="Update a bug",
    description=(
        "Partial update. Each field is applied only if the caller's role may change it; "
        "other fields are ignored."
    ),
)
async def update_bug(
    bug_id: uuid.UUID,
    data: BugUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> BugDetailResponse:
    bug = await BugService(db).update(bug_id, data, current_user)
    return BugDetailResponse.model_validate(bug)


@router.delete(
    "/{bug_id}",
    response_model=MessageResponse,
    summary="Delete a bug",
    description="Delete a bug with its comments and attachments. Admin only.",
    dependencies=[Depends(require_permission(Permission.DELETE_BUG))],
)
async def delete_bug(
    bug_id: uuid.UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> MessageResponse:
    await BugService(db).delete(bug_id, current_user)
    return MessageResponse(message="Bug deleted successfully")


@router.post(
    "/{bug_id}/attachments",
    response_model=AttachmentResponse,
    status_code=201,
    summary="Attach a file",
    description="Record metadata of a file stored elsewhere on a bug the caller may edit.",
)
async def add_attachment(
    bug_id: uuid.UUID,
    data: AttachmentCreate,
    current_user: CurrentUser,
    db: DbSession,
) -> AttachmentResponse:
    attachment = await BugService(db).add_attachment(bug_id, data, current_user)
    return AttachmentResponse.model_validate(attachment)
