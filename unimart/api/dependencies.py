from typing import Optional

import redis.asyncio as aioredis
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from unimart.core.config import settings
from unimart.core.errors import RateLimited
from unimart.core.security import SessionIssuer
from unimart.db.session import SessionAsync
from unimart.helpers.rate_limit import allow
from unimart.models.account import Account
from unimart.services.identity import IdentityService
from unimart.services.profiles import ProfileService
from unimart.services.notifications import NotificationGateway, build_notification_gateway

# auto_error=False: a missing header must surface as our own Unauthorized
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="/api/auth/token",
    description="Authentication with email and password",
    auto_error=False,
)


async def get_db():
    async with SessionAsync() as session:
        yield session


async def get_redis():
    redis = aioredis.from_url(settings.REDIS_URL)
    try:
        yield redis
    finally:
        await redis.aclose()


def get_session_issuer(request: Request) -> SessionIssuer:
    return request.app.state.session_issuer


def get_notification_gateway() -> NotificationGateway:
    return build_notification_gateway()


def get_identity_service(
    db: AsyncSession = Depends(get_db),
    gateway: NotificationGateway = Depends(get_notification_gateway),
    session_issuer: SessionIssuer = Depends(get_session_issuer),
) -> IdentityService:
    return IdentityService(db=db, gateway=gateway, session_issuer=session_issuer)


def get_profile_service(db: AsyncSession = Depends(get_db)) -> ProfileService:
    return ProfileService(db=db)


async def get_current_account(
    token: Optional[str] = Depends(oauth2_scheme),
    identity: IdentityService = Depends(get_identity_service),
) -> Account:
    """
    Session verification boundary used by every protected route.

    Raises ``Unauthorized`` (no bearer token), ``InvalidToken`` (bad
    signature or expired) or ``AccountNotFound`` (account no longer exists).
    """
    return await identity.authenticate(token)


def get_client_ip(request: Request) -> str:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


async def enforce_rate_limit(
    redis: aioredis.Redis,
    request: Request,
    scope: str,
    email: str,
    max_attempts: int,
    window_sec: int = 900,
) -> None:
    if not await allow(redis, scope, email, get_client_ip(request), max_attempts, window_sec):
        raise RateLimited()
