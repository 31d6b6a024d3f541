"""
One-time password generation and validity policy.

Pure functions only: nothing here touches the database or the clock, so the
policy can be tested in isolation.
"""
import secrets
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from unimart.core.config import settings

OTP_MIN = 100000
OTP_MAX = 999999


class OtpPurpose(str, Enum):
    """What a submitted code is meant to prove."""
    REGISTER = "register"
    FORGOT_PASSWORD = "forgot-password"


class OtpTrigger(str, Enum):
    """What caused a code to be issued; decides its lifetime."""
    REGISTER = "register"
    FORGOT_PASSWORD = "forgot-password"
    RESEND = "resend"


def generate_otp() -> str:
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


def expiry_for(trigger: OtpTrigger) -> timedelta:
    # Resend is narrower: the user is actively waiting for the mail.
    if trigger == OtpTrigger.RESEND:
        return timedelta(minutes=settings.OTP_RESEND_EXPIRE_MINUTES)
    return timedelta(minutes=settings.OTP_EXPIRE_MINUTES)


def is_otp_valid(
    stored_code: Optional[str],
    stored_expiry: Optional[datetime],
    supplied_code: Optional[str],
    now: datetime,
) -> bool:
    """
    Check a supplied code against the stored one.

    Valid iff a code is pending, the strings are identical and ``now`` is
    strictly before the expiry. Naive expiries are read as UTC.
    """
    if not stored_code or stored_expiry is None or supplied_code is None:
        return False
    if stored_expiry.tzinfo is None:
        stored_expiry = stored_expiry.replace(tzinfo=timezone.utc)
    if not secrets.compare_digest(stored_code.encode(), supplied_code.encode()):
        return False
    return now < stored_expiry
