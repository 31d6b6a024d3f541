from sqlalchemy import Boolean, Column, ForeignKey, Integer, String

from unimart.db.base import Base


class Privacy(Base):
    """Which contact fields an account shows on its public profile. At most one row per account."""
    __tablename__ = "privacy_settings"

    id = Column(Integer, primary_key=True)
    account_id = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"), unique=True, index=True, nullable=False)

    show_email = Column(Boolean, default=False, nullable=False)
    show_whatsapp = Column(Boolean, default=False, nullable=False)
    show_address = Column(Boolean, default=False, nullable=False)
    show_department = Column(Boolean, default=False, nullable=False)
    show_level = Column(Boolean, default=False, nullable=False)

    def __repr__(self):
        return f"<Privacy(account_id='{self.account_id}')>"
