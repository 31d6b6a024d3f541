"""
Credential store backed by SQLAlchemy.

The repository only flushes; committing or rolling back the unit of work is
the caller's decision.
"""
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from unimart.models.account import Account
from unimart.models.privacy import Privacy


class AccountRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_email(self, email: str, for_update: bool = False) -> Optional[Account]:
        query = select(Account).where(Account.email == email)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def find_by_id(self, account_id: str, for_update: bool = False) -> Optional[Account]:
        query = select(Account).where(Account.id == account_id)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def create(self, **fields: Any) -> Account:
        account = Account(**fields)
        self.db.add(account)
        await self.db.flush()
        return account

    async def update(self, account: Account, **fields: Any) -> Account:
        """Apply a partial update: only the supplied fields change."""
        for name, value in fields.items():
            if not hasattr(Account, name):
                raise AttributeError(f"Account has no field '{name}'")
            setattr(account, name, value)
        await self.db.flush()
        return account

    async def find_privacy(self, account_id: str) -> Optional[Privacy]:
        result = await self.db.execute(select(Privacy).where(Privacy.account_id == account_id))
        return result.scalar_one_or_none()

    async def upsert_privacy(self, account_id: str, **flags: bool) -> Privacy:
        """Create the account's privacy row or change only the supplied flags on it."""
        privacy = await self.find_privacy(account_id)
        if privacy is None:
            privacy = Privacy(account_id=account_id, **flags)
            self.db.add(privacy)
        else:
            for name, value in flags.items():
                setattr(privacy, name, value)
        await self.db.flush()
        return privacy
