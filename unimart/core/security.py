"""
Credential hashing and signed session tokens.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from jose import JWTError, jwt

from unimart.core.config import Settings
from unimart.core.errors import InvalidToken

# bcrypt only looks at the first 72 bytes of a password.
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt()).decode("utf-8")


# Checked against when no account matches, so an unknown email costs one bcrypt
# round like a wrong password does.
DUMMY_PASSWORD_HASH = get_password_hash("unimart-no-such-account")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed_password.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


class SessionIssuer:
    """
    Mints and verifies stateless session tokens.

    A token is an HS256 JWT carrying the account id (``sub``), ``iat`` and
    ``exp``. The server keeps no session table, so a token stays valid until
    it expires even if the password changes in the meantime.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", ttl: timedelta = timedelta(days=7)):
        if not secret:
            raise ValueError("Session signing secret is not configured")
        self._secret = secret
        self.algorithm = algorithm
        self.ttl = ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "SessionIssuer":
        return cls(
            secret=settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM,
            ttl=timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS),
        )

    def issue(self, account_id: str, now: Optional[datetime] = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        claims = {
            "sub": str(account_id),
            "iat": issued_at,
            "exp": issued_at + self.ttl,
        }
        return jwt.encode(claims, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> str:
        """Return the account id sealed in ``token`` or raise ``InvalidToken``."""
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self.algorithm])
        except JWTError:
            raise InvalidToken()

        account_id = payload.get("sub")
        if not account_id:
            raise InvalidToken()
        return account_id
