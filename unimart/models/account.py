import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, String, Text

from unimart.db.base import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Account(Base):
    """
    Durable identity record.

    ``otp`` and ``otp_expiry`` are either both set or both null; only the
    identity service writes them, always as a pair.
    """
    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    full_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)  # bcrypt hash
    is_verified = Column(Boolean, default=False, nullable=False)

    # Public profile; visibility of the contact fields lives in Privacy
    department = Column(String(100), nullable=True)
    level = Column(String(50), nullable=True)
    bio = Column(Text, nullable=True)
    whatsapp_num = Column(String(20), nullable=True)
    address = Column(String(255), nullable=True)
    profile_url = Column(String(500), nullable=True)

    otp = Column(String(6), nullable=True)
    otp_expiry = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def __repr__(self):
        return f"<Account(id='{self.id}', email='{self.email}', verified={self.is_verified})>"
