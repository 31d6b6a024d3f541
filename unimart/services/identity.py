"""
Identity service: registration, email verification, login and password
recovery.

Account verification moves ``PendingVerification -> Verified``; a password
reset moves ``NoPendingReset -> OtpIssued -> Consumed``. Every state
transition runs in one unit of work on the request session, with the account
row locked (``SELECT ... FOR UPDATE``) so two concurrent requests on the same
account cannot both win.
"""
from datetime import datetime, timezone
from typing import Callable, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from unimart.core.errors import (
    AccountNotFound,
    AlreadyVerified,
    DeliveryFailure,
    EmailNotVerified,
    IncorrectPassword,
    InvalidCredentials,
    InvalidOrExpiredOtp,
    NotFound,
    Unauthorized,
    ValidationError,
)
from unimart.core.logging import capture_error, get_logger
from unimart.core.otp import OtpPurpose, OtpTrigger, expiry_for, generate_otp, is_otp_valid
from unimart.core.security import DUMMY_PASSWORD_HASH, SessionIssuer, get_password_hash, verify_password
from unimart.db.session import unit_of_work
from unimart.models.account import Account
from unimart.repositories.accounts import AccountRepository
from unimart.services.notifications import NotificationGateway

logger = get_logger("auth")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IdentityService:
    def __init__(
        self,
        db: AsyncSession,
        gateway: NotificationGateway,
        session_issuer: SessionIssuer,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.accounts = AccountRepository(db)
        self.gateway = gateway
        self.session_issuer = session_issuer
        self.clock = clock

    def _issue_otp(self, trigger: OtpTrigger) -> Tuple[str, datetime]:
        return generate_otp(), self.clock() + expiry_for(trigger)

    def _check_otp(self, account: Account, otp: str) -> None:
        if not is_otp_valid(account.otp, account.otp_expiry, otp, self.clock()):
            logger.info(f"Rejected invalid or expired OTP for account {account.id}")
            raise InvalidOrExpiredOtp()

    # ==================== Registration ====================

    async def register(self, full_name: str, email: str, password: str) -> Account:
        """
        Create an unverified account and send its first OTP.

        The account is written before delivery is confirmed: when the gateway
        fails the account is still committed, holding a code the user never
        received, and ``DeliveryFailure`` is raised so the caller can ask for
        a resend.
        """
        if await self.accounts.find_by_email(email):
            await self.db.rollback()
            raise ValidationError("Email already in use")

        code, expiry = self._issue_otp(OtpTrigger.REGISTER)
        try:
            account = await self.accounts.create(
                full_name=full_name,
                email=email,
                password=get_password_hash(password),
                is_verified=False,
                otp=code,
                otp_expiry=expiry,
            )
        except IntegrityError:
            # Lost a race against a concurrent registration of the same email
            await self.db.rollback()
            raise ValidationError("Email already in use")

        delivery_error = None
        try:
            await self.gateway.send_otp(email, code, OtpTrigger.REGISTER)
        except DeliveryFailure as e:
            delivery_error = e

        await self.db.commit()

        if delivery_error is not None:
            logger.warning(f"Account {account.id} registered but its OTP could not be delivered")
            raise delivery_error

        logger.info(f"Account {account.id} registered, verification pending")
        return account

    async def verify_otp(self, email: str, otp: str, purpose: OtpPurpose) -> Account:
        """
        Check a code for ``purpose``.

        ``register`` marks the account verified and clears the code.
        ``forgot-password`` only validates: the same code is still needed by
        ``reset_password``.
        """
        async with unit_of_work(self.db):
            account = await self.accounts.find_by_email(email, for_update=True)
            if not account:
                raise NotFound()

            if purpose == OtpPurpose.REGISTER:
                if account.is_verified:
                    raise AlreadyVerified()
                self._check_otp(account, otp)
                await self.accounts.update(account, is_verified=True, otp=None, otp_expiry=None)
                logger.info(f"Account {account.id} verified")
            else:
                self._check_otp(account, otp)

        return account

    async def resend_otp(self, email: str) -> None:
        # Allowed for verified accounts too; whether it should be is undecided.
        async with unit_of_work(self.db):
            account = await self.accounts.find_by_email(email, for_update=True)
            if not account:
                raise NotFound()
            code, expiry = self._issue_otp(OtpTrigger.RESEND)
            await self.accounts.update(account, otp=code, otp_expiry=expiry)

        await self.gateway.send_otp(email, code, OtpTrigger.RESEND)
        logger.info(f"OTP reissued for account {account.id}")

    # ==================== Sessions ====================

    async def login(self, email: str, password: str) -> Tuple[Account, str]:
        account = await self.accounts.find_by_email(email)
        # Unknown email and wrong password must be indistinguishable, in timing too
        password_hash = account.password if account else DUMMY_PASSWORD_HASH
        if not verify_password(password, password_hash) or not account:
            logger.info("Login rejected: invalid credentials")
            raise InvalidCredentials()

        if not account.is_verified:
            raise EmailNotVerified()

        token = self.session_issuer.issue(account.id, now=self.clock())
        logger.info(f"Account {account.id} logged in")
        return account, token

    async def authenticate(self, token: Optional[str]) -> Account:
        """Resolve a bearer token to a live account."""
        if not token or not token.strip():
            raise Unauthorized()

        account_id = self.session_issuer.verify(token.strip())

        account = await self.accounts.find_by_id(account_id)
        if not account:
            raise AccountNotFound()
        return account

    # ==================== Password recovery ====================

    async def forgot_password(self, email: str) -> None:
        """
        Issue a password-reset code.

        The caller gets the same acknowledgment whether or not the mail went
        out; delivery failures are logged and reported to Sentry instead.
        """
        async with unit_of_work(self.db):
            account = await self.accounts.find_by_email(email, for_update=True)
            if not account:
                raise NotFound()
            code, expiry = self._issue_otp(OtpTrigger.FORGOT_PASSWORD)
            await self.accounts.update(account, otp=code, otp_expiry=expiry)

        try:
            await self.gateway.send_otp(email, code, OtpTrigger.FORGOT_PASSWORD)
        except DeliveryFailure as e:
            logger.error(f"Password reset OTP for account {account.id} was not delivered")
            capture_error(e, context={"auth": {"flow": "forgot-password"}}, user={"id": account.id})
            return

        logger.info(f"Password reset OTP issued for account {account.id}")

    async def reset_password(self, email: str, otp: str, new_password: str) -> None:
        # New hash and cleared code land in the same commit: no replay afterwards
        async with unit_of_work(self.db):
            account = await self.accounts.find_by_email(email, for_update=True)
            if not account:
                raise NotFound()
            self._check_otp(account, otp)
            await self.accounts.update(
                account,
                password=get_password_hash(new_password),
                otp=None,
                otp_expiry=None,
            )

        logger.info(f"Password reset for account {account.id}")

    async def change_password(self, account_id: str, current_password: str, new_password: str) -> None:
        """Replace the password of an authenticated account; OTP state and sessions are untouched."""
        async with unit_of_work(self.db):
            account = await self.accounts.find_by_id(account_id, for_update=True)
            if not account:
                raise AccountNotFound()
            if not verify_password(current_password, account.password):
                raise IncorrectPassword()
            await self.accounts.update(account, password=get_password_hash(new_password))

        logger.info(f"Password changed for account {account.id}")
