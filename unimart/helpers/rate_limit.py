from redis.asyncio import Redis

from unimart.core.config import settings


async def allow(
    redis: Redis,
    scope: str,
    email: str,
    client_ip: str,
    max_attempts: int,
    window_sec: int,
) -> bool:
    """
    Fixed-window counter keyed by scope, email and client IP.

    Returns False once more than ``max_attempts`` calls land in the window.
    """
    if not settings.RATE_LIMIT_ENABLED:
        return True

    key = f"rl:{scope}:{email.lower()}:{client_ip}"
    count = await redis.incr(key)
    if count == 1:
        await redis.expire(key, window_sec)
    return count <= max_attempts
