"""Authentication service: registration, login, token rotation and logout."""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import redis.asyncio as redis
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bugtracker.config import settings
from bugtracker.core.exceptions import (
    AccountLockedError,
    AuthenticationError,
    BusinessRuleError,
    ConflictError,
)
from bugtracker.core.security import (
    REFRESH_TOKEN_TYPE,
    create_access_token,
    create_refresh_token,
    decode_token,
    generate_session_id,
    hash_password,
    needs_rehash,
    seconds_until_expiry,
    verify_password,
)
from bugtracker.models.user import User
from bugtracker.redis import SessionStore, TokenBlacklist
from bugtracker.schemas.auth import RegisterRequest, TokenResponse
from bugtracker.schemas.user import UserResponse

REFRESH_TOKEN_TTL_SECONDS = settings.refresh_token_expire_days * 24 * 60 * 60


class AuthService:
    """Service for authentication operations."""

    def __init__(self, db: AsyncSession, redis_client: redis.Redis):
        self.db = db
        self.token_blacklist = TokenBlacklist(redis_client)
        self.session_store = SessionStore(redis_client)

    async def register(self, data: RegisterRequest) -> tuple[User, TokenResponse]:
        """
        Register a new user and log them in.

        Raises:
            ConflictError: If the email is already registered
        """
        existing = await self.db.execute(select(User.id).where(User.email == data.email))
        if existing.scalar_one_or_none():
            raise ConflictError(
                message="User already exists with this email",
                details=[{"field": "email", "message": "This email is already registered"}],
            )

        user = User(
            name=data.name,
            email=data.email,
            password_hash=hash_password(data.password),
            role=data.role,
            last_login=datetime.now(timezone.utc),
        )

        self.db.add(user)
        await self.db.flush()
        await self.db.refresh(user)

        return user, await self._start_session(user)

    async def authenticate(self, email: str, password: str) -> tuple[User, TokenResponse]:
        """
        Check credentials and open a new session.

        Raises:
            AuthenticationError: If credentials are invalid or the account is deactivated
            AccountLockedError: If the account is locked after repeated failures
        """
        result = await self.db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if not user:
            raise AuthenticationError(message="Invalid credentials")

        if user.is_locked:
            raise AccountLockedError(unlock_at=user.locked_until.isoformat())

        if not verify_password(password, user.password_hash):
            await self._handle_failed_login(user)
            raise AuthenticationError(message="Invalid credentials")

        if not user.is_active:
            raise AuthenticationError(message="Account is deactivated")

        user.failed_login_attempts = 0
        user.locked_until = None
        user.last_login = datetime.now(timezone.utc)

        if needs_rehash(user.password_hash):
            user.password_hash = hash_password(password)

        await self.db.flush()

        return user, await self._start_session(user)

    async def refresh_tokens(self, refresh_token: str) -> TokenResponse:
        """
        Exchange a refresh token for a new token pair.

        The presented token is revoked and its session replaced
        (refresh token rotation).

        Raises:
            AuthenticationError: If the refresh token is invalid, revoked or stale
        """
        try:
            payload = decode_token(refresh_token)
        except JWTError:
            raise AuthenticationError(message="Invalid refresh token")

        if payload.get("type") != REFRESH_TOKEN_TYPE:
            raise AuthenticationError(message="Invalid token type")

        jti = payload.get("jti")
        if not jti or await self.token_blacklist.is_blacklisted(jti):
            raise AuthenticationError(message="Token has been revoked")

        session_id = payload.get("session_id")
        session = await self.session_store.get(session_id) if session_id else None
        if not session:
            raise AuthenticationError(message="Session expired")

        # Only the latest refresh token of a session is valid
        if session.get("refresh_token") != jti:
            raise AuthenticationError(message="Invalid refresh token")

        try:
            user_id = uuid.UUID(payload.get("sub", ""))
        except ValueError:
            raise AuthenticationError(message="Invalid token payload")

        user = await self.db.get(User, user_id)
        if not user or not user.is_active:
            raise AuthenticationError(message="User not found or inactive")

        await self.token_blacklist.add(jti, seconds_until_expiry(payload))
        await self.session_store.delete(session_id)

        return await self._start_session(user)

    async def logout(self, access_token: str, refresh_token: Optional[str] = None) -> None:
        """Revoke the given tokens and end their session."""
        await self._revoke(access_token, end_session=True)
        if refresh_token:
            await self._revoke(refresh_token, end_session=False)

    async def change_password(
        self, user: User, current_password: str, new_password: str
    ) -> None:
        """
        Change a user's password and end all of their sessions.

        Raises:
            BusinessRuleError: If the current password is incorrect
        """
        if not verify_password(current_password, user.password_hash):
            raise BusinessRuleError(
                message="Current password is incorrect",
                code="INVALID_CURRENT_PASSWORD",
            )

        user.password_hash = hash_password(new_password)
        await self.db.flush()

        await self.session_store.delete_all_user_sessions(str(user.id))

    async def _start_session(self, user: User) -> TokenResponse:
        session_id = generate_session_id()
        access_token = create_access_token(
            user_id=str(user.id),
            role=user.role,
            session_id=session_id,
        )
        refresh_token, refresh_jti = create_refresh_token(
            user_id=str(user.id),
            session_id=session_id,
        )

        await self.session_store.create(
            session_id=session_id,
            user_id=str(user.id),
            refresh_token=refresh_jti,
            expires_in=REFRESH_TOKEN_TTL_SECONDS,
        )

        return TokenResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=settings.access_token_expire_minutes * 60,
            user=UserResponse.model_validate(user),
        )

    async def _revoke(self, token: str, end_session: bool) -> None:
        try:
            payload = decode_token(token)
        except JWTError:
            # Expired or forged tokens are already unusable
            return

        jti = payload.get("jti")
        if jti:
            await self.token_blacklist.add(jti, seconds_until_expiry(payload))

        session_id = payload.get("session_id")
        if end_session and session_id:
            await self.session_store.delete(session_id)

    async def _handle_failed_login(self, user: User) -> None:
        """Count a failed attempt and lock the account past the threshold."""
        user.failed_login_attempts += 1

        if user.failed_login_attempts >= settings.account_lockout_threshold:
            user.locked_until = datetime.now(timezone.utc) + timedelta(
                minutes=settings.account_lockout_duration_minutes
            )

        # Committed here: the request's unit of work rolls back on the 401
        await self.db.commit()
