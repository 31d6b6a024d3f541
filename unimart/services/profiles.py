"""
Profile service: the marketplace-facing part of an account.

Profile fields live on the account row; the public visibility of contact
fields lives in a separate privacy row, created on first update.
"""
from typing import Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from unimart.core.errors import AccountNotFound, NotFound
from unimart.core.logging import get_logger
from unimart.db.session import unit_of_work
from unimart.models.account import Account
from unimart.models.privacy import Privacy
from unimart.repositories.accounts import AccountRepository

logger = get_logger("profiles")

PROFILE_FIELDS = ("full_name", "department", "level", "bio", "whatsapp_num", "address")

# Contact field shown on the public profile -> flag that allows it
PUBLIC_CONTACT_FIELDS = {
    "email": "show_email",
    "whatsapp_num": "show_whatsapp",
    "address": "show_address",
    "department": "show_department",
    "level": "show_level",
}


class ProfileService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.accounts = AccountRepository(db)

    async def get_profile(self, account_id: str) -> Tuple[Account, Optional[Privacy]]:
        account = await self.accounts.find_by_id(account_id)
        if not account:
            raise AccountNotFound()
        return account, await self.accounts.find_privacy(account_id)

    async def update_profile(
        self,
        account_id: str,
        fields: dict,
        privacy: Optional[dict] = None,
    ) -> Tuple[Account, Optional[Privacy]]:
        """
        Apply a partial profile update and upsert the privacy flags together.

        Empty values are ignored so a form resubmitting blank inputs does not
        wipe the profile.
        """
        changes = {name: value for name, value in fields.items() if name in PROFILE_FIELDS and value}
        flags = {name: value for name, value in (privacy or {}).items() if isinstance(value, bool)}

        async with unit_of_work(self.db):
            account = await self.accounts.find_by_id(account_id, for_update=True)
            if not account:
                raise AccountNotFound()
            if changes:
                await self.accounts.update(account, **changes)
            if flags:
                await self.accounts.upsert_privacy(account_id, **flags)
            stored_privacy = await self.accounts.find_privacy(account_id)

        logger.info(f"Profile updated for account {account_id}")
        return account, stored_privacy

    async def update_profile_picture(self, account_id: str, profile_url: str) -> Account:
        async with unit_of_work(self.db):
            account = await self.accounts.find_by_id(account_id, for_update=True)
            if not account:
                raise AccountNotFound()
            await self.accounts.update(account, profile_url=profile_url)
        return account

    async def get_public_profile(self, account_id: str) -> dict:
        """Public fields plus the contact fields the owner chose to show."""
        account = await self.accounts.find_by_id(account_id)
        if not account:
            raise NotFound("Student not found.")
        privacy = await self.accounts.find_privacy(account_id)

        profile = {
            "id": account.id,
            "full_name": account.full_name,
            "bio": account.bio,
            "profile_url": account.profile_url,
            "created_at": account.created_at,
            "privacy": privacy,
        }
        for field, flag in PUBLIC_CONTACT_FIELDS.items():
            if privacy is not None and getattr(privacy, flag):
                profile[field] = getattr(account, field)
        return profile
