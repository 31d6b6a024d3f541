"""
    Authentication Endpoints

    Registration with email OTP verification, login, and OTP-based password
    recovery. Business rules live in ``IdentityService``; these handlers only
    translate HTTP to service calls. Domain errors are turned into responses
    by the exception handlers registered in ``unimart.main``.

    Endpoints:
    - /register: Creates an unverified account and emails a verification code.
    - /verify-otp: Checks a code for email verification or password reset.
    - /resend-otp: Issues a fresh verification code (5 minute window).
    - /login: Checks credentials and issues a 7 day session token.
    - /token: OAuth2 password flow variant of /login (Swagger "Authorize").
    - /forgot-password: Emails a password reset code.
    - /reset-password: Sets a new password using a reset code.

    Security Features:
    - Rate limiting on every OTP endpoint.
    - Uniform login errors that do not reveal whether an email is registered.
"""
from fastapi import APIRouter, Depends, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from redis.asyncio import Redis

from unimart.api.dependencies import enforce_rate_limit, get_identity_service, get_redis
from unimart.core.otp import OtpPurpose
from unimart.schemas.auth import (
    ForgotPasswordIn,
    Login,
    LoginOut,
    MessageOut,
    ResendOtpIn,
    ResetPasswordIn,
    Token,
    VerifyOtpIn,
)
from unimart.schemas.user import RegisterOut, UserCreate, UserOut
from unimart.services.identity import IdentityService

router = APIRouter()


@router.post("/register", response_model=RegisterOut, status_code=status.HTTP_201_CREATED)
async def register(user: UserCreate, identity: IdentityService = Depends(get_identity_service)):
    account = await identity.register(user.full_name, user.email, user.password)
    return RegisterOut(
        message="OTP sent to email. Please verify to continue.",
        user=UserOut.model_validate(account),
    )


@router.post("/verify-otp", response_model=MessageOut)
async def verify_otp(
    payload: VerifyOtpIn,
    request: Request,
    identity: IdentityService = Depends(get_identity_service),
    redis: Redis = Depends(get_redis),
):
    await enforce_rate_limit(redis, request, "otp:verify", payload.email, max_attempts=10)
    await identity.verify_otp(payload.email, payload.otp, payload.purpose)

    if payload.purpose == OtpPurpose.REGISTER:
        return MessageOut(message="Email verified successfully")
    return MessageOut(message="OTP verified for password reset")


@router.post("/resend-otp", response_model=MessageOut)
async def resend_otp(
    payload: ResendOtpIn,
    request: Request,
    identity: IdentityService = Depends(get_identity_service),
    redis: Redis = Depends(get_redis),
):
    await enforce_rate_limit(redis, request, "otp:resend", payload.email, max_attempts=5)
    await identity.resend_otp(payload.email)
    return MessageOut(message="OTP resent successfully")


@router.post("/login", response_model=LoginOut)
async def login(login_data: Login, identity: IdentityService = Depends(get_identity_service)):
    account, token = await identity.login(login_data.email, login_data.password)
    return LoginOut(user=UserOut.model_validate(account), access_token=token)


@router.post("/token", response_model=Token)
async def oauth2_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    identity: IdentityService = Depends(get_identity_service),
):
    """
    Standard OAuth2 endpoint used by the Swagger UI "Authorize" button.

    The OAuth2 ``username`` field carries the account email.
    """
    _, token = await identity.login(form_data.username, form_data.password)
    return Token(access_token=token)


@router.post("/forgot-password", response_model=MessageOut)
async def forgot_password(
    payload: ForgotPasswordIn,
    request: Request,
    identity: IdentityService = Depends(get_identity_service),
    redis: Redis = Depends(get_redis),
):
    await enforce_rate_limit(redis, request, "otp:forgot", payload.email, max_attempts=5)
    await identity.forgot_password(payload.email)
    return MessageOut(message="OTP sent to email for password reset.")


@router.post("/reset-password", response_model=MessageOut)
async def reset_password(
    payload: ResetPasswordIn,
    request: Request,
    identity: IdentityService = Depends(get_identity_service),
    redis: Redis = Depends(get_redis),
):
    await enforce_rate_limit(redis, request, "otp:reset", payload.email, max_attempts=10)
    await identity.reset_password(payload.email, payload.otp, payload.new_password)
    return MessageOut(message="Password reset successfully. You can now log in.")
