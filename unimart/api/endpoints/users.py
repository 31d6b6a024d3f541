"""
    User Endpoints

    Profile and password management for the logged-in account, plus the
    public profile other students see.

    Endpoints:
    - GET /me: Full profile of the logged-in account, privacy flags included.
    - PUT /me: Partial profile update; privacy flags are upserted in the same transaction.
    - PUT /profile-pic: Stores the URL of an already uploaded profile picture.
    - PUT /change-password: Requires the current password.
    - GET /{account_id}: Public profile, contact fields filtered by privacy flags.
"""
from typing import Optional

from fastapi import APIRouter, Depends

from unimart.api.dependencies import get_current_account, get_identity_service, get_profile_service
from unimart.models.account import Account
from unimart.models.privacy import Privacy
from unimart.schemas.auth import MessageOut
from unimart.schemas.user import (
    ChangePasswordIn,
    PrivacyOut,
    ProfileOut,
    ProfilePictureIn,
    ProfileUpdate,
    ProfileUpdateOut,
    PublicProfileOut,
)
from unimart.services.identity import IdentityService
from unimart.services.profiles import ProfileService

router = APIRouter()


def _profile_out(account: Account, privacy: Optional[Privacy]) -> ProfileOut:
    profile = ProfileOut.model_validate(account)
    profile.privacy = PrivacyOut.model_validate(privacy) if privacy else None
    return profile


@router.get("/me", response_model=ProfileOut)
async def read_me(
    current_account: Account = Depends(get_current_account),
    profiles: ProfileService = Depends(get_profile_service),
):
    account, privacy = await profiles.get_profile(current_account.id)
    return _profile_out(account, privacy)


@router.put("/me", response_model=ProfileUpdateOut)
async def update_me(
    payload: ProfileUpdate,
    current_account: Account = Depends(get_current_account),
    profiles: ProfileService = Depends(get_profile_service),
):
    privacy = payload.privacy.model_dump(exclude_none=True) if payload.privacy else None
    account, stored_privacy = await profiles.update_profile(
        current_account.id,
        payload.model_dump(exclude={"privacy"}, exclude_none=True),
        privacy,
    )
    return ProfileUpdateOut(message="Profile updated.", user=_profile_out(account, stored_privacy))


@router.put("/profile-pic", response_model=ProfileUpdateOut)
async def update_profile_picture(
    payload: ProfilePictureIn,
    current_account: Account = Depends(get_current_account),
    profiles: ProfileService = Depends(get_profile_service),
):
    account = await profiles.update_profile_picture(current_account.id, payload.profile_url)
    _, privacy = await profiles.get_profile(account.id)
    return ProfileUpdateOut(message="Profile picture updated.", user=_profile_out(account, privacy))


@router.put("/change-password", response_model=MessageOut)
async def change_password(
    payload: ChangePasswordIn,
    current_account: Account = Depends(get_current_account),
    identity: IdentityService = Depends(get_identity_service),
):
    """
    Change the password of the logged-in account.

    Existing session tokens stay valid until they expire.
    """
    await identity.change_password(current_account.id, payload.current_password, payload.new_password)
    return MessageOut(message="Password changed successfully.")


@router.get("/{account_id}", response_model=PublicProfileOut, response_model_exclude_unset=True)
async def read_public_profile(account_id: str, profiles: ProfileService = Depends(get_profile_service)):
    """Public profile of another student. No session required."""
    profile = await profiles.get_public_profile(account_id)
    privacy = profile.pop("privacy")
    return PublicProfileOut(
        **profile,
        privacy=PrivacyOut.model_validate(privacy) if privacy else None,
    )
