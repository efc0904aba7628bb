"""User management API endpoints."""

import uuid
from typing import Annotated, Optional

from fastapi import APIRouter, Query

from bugtracker.api.deps import AdminUser, CurrentUser, DbSession, Pagination
from bugtracker.models.user import UserRole
from bugtracker.schemas.common import MessageResponse, PaginatedResponse
from bugtracker.schemas.user import (
    ProfileUpdate,
    UserCreate,
    UserDetailResponse,
    UserResponse,
    UserSummary,
    UserUpdate,
)
from bugtracker.services.user import UserService

router = APIRouter()


@router.get(
    "/developers",
    response_model=list[UserSummary],
    summary="List assignable users",
    description="Active developers and admins, for assignment pickers.",
)
async def list_developers(current_user: CurrentUser, db: DbSession) -> list[UserSummary]:
    users = await UserService(db).list_developers()
    return [UserSummary.model_validate(u) for u in users]


@router.put(
    "/profile",
    response_model=UserResponse,
    summary="Update own profile",
)
async def update_profile(
    data: ProfileUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> UserResponse:
    user = await UserService(db).update_profile(current_user, data)
    return UserResponse.model_validate(user)


@router.get(
    "",
    response_model=PaginatedResponse[UserResponse],
    summary="List users",
    description="Paginated user list, newest first. Admin only.",
)
async def list_users(
    admin: AdminUser,
    db: DbSession,
    pagination: Pagination,
    role: Annotated[Optional[UserRole], Query()] = None,
    is_active: Annotated[Optional[bool], Query()] = None,
) -> PaginatedResponse[UserResponse]:
    users, total = await UserService(db).list_users(
        role=role,
        is_active=is_active,
        offset=pagination.offset,
        limit=pagination.limit,
    )

    return PaginatedResponse.create(
        items=[UserResponse.model_validate(u) for u in users],
        total=total,
        page=pagination.page,
        limit=pagination.limit,
    )


@router.post(
    "",
    response_model=UserResponse,
    status_code=201,
    summary="Create a user",
    description="Create a user with any role. Admin only.",
)
async def create_user(data: UserCreate, admin: AdminUser, db: DbSession) -> UserResponse:
    user = await UserService(db).create(data, created_by=admin)
    return UserResponse.model_validate(user)


@router.get(
    "/{user_id}",
    response_model=UserDetailResponse,
    summary="Get a user",
    description="User with per-status counts of reported and assigned bugs. Admin only.",
)
async def get_user(user_id: uuid.UUID, admin: AdminUser, db: DbSession) -> UserDetailResponse:
    user_service = UserService(db)
    user = await user_service.get_or_404(user_id)
    bug_stats = await user_service.get_bug_stats(user)

    return UserDetailResponse(
        **UserResponse.model_validate(user).model_dump(),
        bug_stats=bug_stats,
    )


@router.api_route(
    "/{user_id}",
    methods=["PUT", "PATCH"],
    response_model=UserResponse,
    summary="Update a user",
    description="Change name, email, role or active flag. Admin only.",
)
async def update_user(
    user_id: uuid.UUID,
    data: UserUpdate,
    admin: AdminUser,
    db: DbSession,
) -> UserResponse:
    user_service = UserService(db)
    user = await user_service.get_or_404(user_id)

    user = await user_service.update(user, data, updated_by=admin)
    return UserResponse.model_validate(user)


@router.delete(
    "/{user_id}",
    response_model=MessageResponse,
    summary="Delete a user",
    description="Only users with no bugs or comments can be deleted. Admin only.",
)
async def delete_user(user_id: uuid.UUID, admin: AdminUser, db: DbSession) -> MessageResponse:
    user_service = UserService(db)
    user = await user_service.get_or_404(user_id)

    await user_service.delete(user, deleted_by=admin)
    return MessageResponse(message="User deleted successfully")
