"""
Domain errors for the identity and session subsystem.

Each error carries a machine-readable ``kind``, a caller-facing message and
the HTTP status the API maps it to. Handlers in ``unimart.main`` turn them
into ``{"detail": ..., "kind": ...}`` responses.
"""
from typing import Optional


class IdentityError(Exception):
    """Base class for every error the identity service raises on purpose."""
    kind = "identity_error"
    status_code = 400
    message = "Request could not be processed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"detail": self.message, "kind": self.kind}


class ValidationError(IdentityError):
    kind = "validation_error"
    status_code = 400
    message = "Invalid input"


class NotFound(IdentityError):
    kind = "not_found"
    status_code = 404
    message = "User not found"


class InvalidCredentials(IdentityError):
    kind = "invalid_credentials"
    status_code = 401
    message = "Invalid credentials"


class EmailNotVerified(IdentityError):
    kind = "email_not_verified"
    status_code = 403
    message = "Please verify your email before logging in."


class InvalidOrExpiredOtp(IdentityError):
    kind = "invalid_or_expired_otp"
    status_code = 400
    message = "Invalid or expired OTP"


class AlreadyVerified(IdentityError):
    kind = "already_verified"
    status_code = 400
    message = "Already verified"


class IncorrectPassword(IdentityError):
    kind = "incorrect_password"
    status_code = 401
    message = "Incorrect current password."


# Session layer: three failure kinds that must stay distinguishable.

class Unauthorized(IdentityError):
    kind = "unauthorized"
    status_code = 401
    message = "Unauthorized"


class InvalidToken(IdentityError):
    kind = "invalid_token"
    status_code = 401
    message = "Invalid token"


class AccountNotFound(IdentityError):
    kind = "account_not_found"
    status_code = 404
    message = "User not found"


class DeliveryFailure(IdentityError):
    kind = "delivery_failure"
    status_code = 503
    message = "Could not deliver the verification code. Please request a new one."


class RateLimited(IdentityError):
    kind = "rate_limited"
    status_code = 429
    message = "Too many requests"


class Internal(IdentityError):
    kind = "internal"
    status_code = 500
    message = "Internal server error"
