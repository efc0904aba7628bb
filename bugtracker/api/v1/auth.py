"""Authentication API endpoints."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials
from redis.exceptions import RedisError

from bugtracker.api.deps import CurrentUser, DbSession, RedisClient, security
from bugtracker.config import settings
from bugtracker.core.exceptions import APIException, RateLimitError
from bugtracker.core.permissions import get_user_permissions
from bugtracker.middleware.audit_logger import get_client_ip, log_auth_event
from bugtracker.redis import RateLimiter
from bugtracker.schemas.auth import (
    CurrentUserResponse,
    LoginRequest,
    LogoutRequest,
    PasswordChangeRequest,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
)
from bugtracker.schemas.common import MessageResponse
from bugtracker.services.auth import AuthService

router = APIRouter()
logger = structlog.get_logger()


async def check_login_rate_limit(request: Request, redis_client: RedisClient) -> None:
    """Stricter per-IP limit for login attempts."""
    if not settings.rate_limit_enabled:
        return

    rate_limiter = RateLimiter(redis_client)
    try:
        is_allowed, _, retry_after = await rate_limiter.is_allowed(
            key=f"login:{get_client_ip(request)}",
            max_requests=settings.login_rate_limit_per_minute,
            window_seconds=60,
        )
    except (RedisError, OSError) as exc:
        logger.warning("login_rate_limit_unavailable", error=str(exc))
        return

    if not is_allowed:
        raise RateLimitError(
            message="Too many login attempts. Please try again later.",
            retry_after=retry_after,
        )


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=201,
    summary="Register a new user",
    description="Create an account (developer, tester or reporter) and return tokens.",
)
async def register(
    request: Request,
    data: RegisterRequest,
    db: DbSession,
    redis_client: RedisClient,
) -> TokenResponse:
    auth_service = AuthService(db, redis_client)
    user, tokens = await auth_service.register(data)

    log_auth_event(
        "register",
        user_id=str(user.id),
        email=user.email,
        ip_address=get_client_ip(request),
    )
    return tokens


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Login to get tokens",
    description="Authenticate with email and password to obtain access and refresh tokens.",
    dependencies=[Depends(check_login_rate_limit)],
)
async def login(
    request: Request,
    data: LoginRequest,
    db: DbSession,
    redis_client: RedisClient,
) -> TokenResponse:
    auth_service = AuthService(db, redis_client)
    try:
        user, tokens = await auth_service.authenticate(data.email, data.password)
    except APIException as exc:
        log_auth_event(
            "login",
            email=data.email,
            success=False,
            reason=exc.code,
            ip_address=get_client_ip(request),
        )
        raise

    log_auth_event(
        "login",
        user_id=str(user.id),
        email=user.email,
        ip_address=get_client_ip(request),
    )
    return tokens


@router.post(
    "/refresh",
    response_model=TokenResponse,
    summary="Refresh access token",
    description="Exchange a refresh token for a new token pair. The old refresh token is revoked.",
)
async def refresh(
    data: RefreshRequest,
    db: DbSession,
    redis_client: RedisClient,
) -> TokenResponse:
    auth_service = AuthService(db, redis_client)
    return await auth_service.refresh_tokens(data.refresh_token)


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Logout current session",
    description="Revoke the current access token and, if given, the refresh token.",
)
async def logout(
    request: Request,
    current_user: CurrentUser,
    db: DbSession,
    redis_client: RedisClient,
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    data: LogoutRequest | None = None,
) -> MessageResponse:
    auth_service = AuthService(db, redis_client)
    await auth_service.logout(
        credentials.credentials,
        data.refresh_token if data else None,
    )

    log_auth_event(
        "logout",
        user_id=str(current_user.id),
        email=current_user.email,
        ip_address=get_client_ip(request),
    )
    return MessageResponse(message="Successfully logged out")


@router.get(
    "/me",
    response_model=CurrentUserResponse,
    summary="Get current user profile",
    description="Profile of the authenticated user with their effective permissions.",
)
async def get_me(current_user: CurrentUser) -> CurrentUserResponse:
    response = CurrentUserResponse.model_validate(current_user)
    response.permissions = sorted(p.value for p in get_user_permissions(current_user))
    return response


@router.api_route(
    "/change-password",
    methods=["POST", "PUT"],
    response_model=MessageResponse,
    summary="Change password",
    description="Change the current user's password. All existing sessions are ended.",
)
async def change_password(
    request: Request,
    data: PasswordChangeRequest,
    current_user: CurrentUser,
    db: DbSession,
    redis_client: RedisClient,
) -> MessageResponse:
    auth_service = AuthService(db, redis_client)
    await auth_service.change_password(
        user=current_user,
        current_password=data.current_password,
        new_password=data.new_password,
    )

    log_auth_event(
        "password_change",
        user_id=str(current_user.id),
        email=current_user.email,
        ip_address=get_client_ip(request),
    )
    return MessageResponse(
        message="Password changed successfully. Please login again with your new password."
    )
