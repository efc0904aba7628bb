"""Redis connection plus the session, blacklist and rate-limit stores."""

from typing import Optional

import redis.asyncio as redis

from bugtracker.config import settings

redis_pool: Optional[redis.ConnectionPool] = None
redis_client: Optional[redis.Redis] = None


async def init_redis() -> redis.Redis:
    """Initialize the Redis connection pool and check connectivity."""
    global redis_pool, redis_client

    redis_pool = redis.ConnectionPool.from_url(
        settings.redis_url,
        password=settings.redis_password.get_secret_value() or None,
        decode_responses=True,
        max_connections=50,
    )
    redis_client = redis.Redis(connection_pool=redis_pool)
    await redis_client.ping()

    return redis_client


async def get_redis() -> redis.Redis:
    """Get Redis client dependency."""
    if redis_client is None:
        return await init_redis()
    return redis_client


async def close_redis() -> None:
    """Close Redis connection pool."""
    global redis_pool, redis_client

    if redis_client:
        await redis_client.aclose()
    if redis_pool:
        await redis_pool.disconnect()

    redis_client = None
    redis_pool = None


class TokenBlacklist:
    """Revoked JWT ids, each kept until the token would have expired anyway."""

    PREFIX = "token_blacklist:"

    def __init__(self, client: redis.Redis):
        self.redis = client

    async def add(self, jti: str, expires_in: int) -> None:
        # SETEX rejects a zero TTL; an already-expired token needs no entry
        if expires_in <= 0:
            return
        await self.redis.setex(f"{self.PREFIX}{jti}", expires_in, "1")

    async def is_blacklisted(self, jti: str) -> bool:
        return await self.redis.exists(f"{self.PREFIX}{jti}") > 0


class SessionStore:
    """Login sessions keyed by session id, holding the current refresh jti."""

    PREFIX = "session:"
    USER_SESSIONS_PREFIX = "user_sessions:"

    def __init__(self, client: redis.Redis):
        self.redis = client

    async def create(
        self, session_id: str, user_id: str, refresh_token: str, expires_in: int
    ) -> None:
        """Create a new session and index it under the user."""
        session_key = f"{self.PREFIX}{session_id}"

        await self.redis.hset(
            session_key,
            mapping={
                "user_id": user_id,
                "refresh_token": refresh_token,
            },
        )
        await self.redis.expire(session_key, expires_in)
        await self.redis.sadd(f"{self.USER_SESSIONS_PREFIX}{user_id}", session_id)

    async def get(self, session_id: str) -> Optional[dict]:
        data = await self.redis.hgetall(f"{self.PREFIX}{session_id}")
        return data if data else None

    async def delete(self, session_id: str) -> None:
        session_key = f"{self.PREFIX}{session_id}"
        session_data = await self.redis.hgetall(session_key)

        if session_data and "user_id" in session_data:
            await self.redis.srem(
                f"{self.USER_SESSIONS_PREFIX}{session_data['user_id']}", session_id
            )

        await self.redis.delete(session_key)

    async def delete_all_user_sessions(self, user_id: str) -> int:
        """Delete every session of a user, e.g. after a password change."""
        user_sessions_key = f"{self.USER_SESSIONS_PREFIX}{user_id}"
        session_ids = await self.redis.smembers(user_sessions_key)

        for session_id in session_ids:
            await self.redis.delete(f"{self.PREFIX}{session_id}")

        await self.redis.delete(user_sessions_key)
        return len(session_ids)


class RateLimiter:
    """Redis-based sliding window rate limiter."""

    PREFIX = "rate_limit:"

    def __init__(self, client: redis.Redis):
        self.redis = client

    async def is_allowed(
        self, key: str, max_requests: int, window_seconds: int = 60
    ) -> tuple[bool, int, int]:
        """
        Check if a request is allowed under rate limit.

        Returns:
            Tuple of (is_allowed, remaining_requests, retry_after_seconds)
        """
        rate_key = f"{self.PREFIX}{key}"
        seconds, microseconds = await self.redis.time()
        now = seconds + microseconds / 1_000_000
        window_start = now - window_seconds

        pipe = self.redis.pipeline()
        pipe.zremrangebyscore(rate_key, 0, window_start)
        pipe.zcard(rate_key)
        pipe.zadd(rate_key, {f"{now:.6f}": now})
        pipe.expire(rate_key, window_seconds)
        results = await pipe.execute()
        current_count = results[1]

        if current_count >= max_requests:
            oldest = await self.redis.zrange(rate_key, 0, 0, withscores=True)
            if oldest:
                retry_after = int(oldest[0][1] + window_seconds - now)
                return False, 0, max(retry_after, 1)
            return False, 0, window_seconds

        return True, max_requests - current_count - 1, 0

    async def reset(self, key: str) -> None:
        await self.redis.delete(f"{self.PREFIX}{key}")
