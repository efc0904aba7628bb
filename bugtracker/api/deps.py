"""API dependencies for authentication, authorization and pagination."""

import uuid
from typing import Annotated, Optional

import redis.asyncio as redis
from fastapi import Depends, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from bugtracker.config import settings
from bugtracker.core.exceptions import AuthenticationError, AuthorizationError
from bugtracker.core.permissions import Permission, has_permission
from bugtracker.core.security import ACCESS_TOKEN_TYPE, decode_token
from bugtracker.database import get_db
from bugtracker.middleware.audit_logger import log_permission_event
from bugtracker.models.user import User
from bugtracker.redis import TokenBlacklist, get_redis
from bugtracker.schemas.common import PaginationParams

security = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
    redis_client: Annotated[redis.Redis, Depends(get_redis)],
) -> User:
    """
    Resolve the user behind the bearer token.

    The role is always read from the database; the token's role claim is
    never trusted.

    Raises:
        AuthenticationError: If the token is missing, invalid, revoked,
            or belongs to a missing or deactivated user
    """
    if not credentials:
        raise AuthenticationError(message="Access denied. No token provided.")

    try:
        payload = decode_token(credentials.credentials)
    except JWTError:
        raise AuthenticationError(message="Invalid or expired token")

    if payload.get("type") != ACCESS_TOKEN_TYPE:
        raise AuthenticationError(message="Invalid token type")

    jti = payload.get("jti")
    if jti and await TokenBlacklist(redis_client).is_blacklisted(jti):
        raise AuthenticationError(message="Token has been revoked")

    try:
        user_id = uuid.UUID(payload.get("sub", ""))
    except ValueError:
        raise AuthenticationError(message="Invalid token payload")

    user = await db.get(User, user_id)
    if not user:
        raise AuthenticationError(message="Invalid token. User not found.")

    if not user.is_active:
        raise AuthenticationError(message="Account is deactivated")

    # Plain string for the audit log; the ORM object is bound to the session
    request.state.user_id = str(user.id)

    return user


def require_permission(*permissions: Permission):
    """
    Dependency to require any of the given permissions.

    Usage:
        @router.delete("/{bug_id}", dependencies=[Depends(require_permission(Permission.DELETE_BUG))])
    """

    async def permission_checker(
        request: Request,
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        if not any(has_permission(current_user, p) for p in permissions):
            log_permission_event(
                action=request.method.lower(),
                resource=request.url.path,
                user_id=str(current_user.id),
                granted=False,
                required_permission=",".join(p.value for p in permissions),
                user_role=current_user.role.value,
            )
            raise AuthorizationError(
                message="Access denied. Insufficient permissions.",
                details=[
                    {
                        "required_permissions": [p.value for p in permissions],
                        "user_role": current_user.role.value,
                    }
                ],
            )
        return current_user

    return permission_checker


def get_pagination(
    page: Annotated[int, Query(ge=1, description="Page number")] = 1,
    limit: Annotated[
        int, Query(ge=1, le=settings.max_page_size, description="Items per page")
    ] = settings.default_page_size,
) -> PaginationParams:
    return PaginationParams(page=page, limit=limit)


# Type aliases for common dependencies
CurrentUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(require_permission(Permission.MANAGE_USERS))]
DbSession = Annotated[AsyncSession, Depends(get_db)]
RedisClient = Annotated[redis.Redis, Depends(get_redis)]
Pagination = Annotated[PaginationParams, Depends(get_pagination)]
