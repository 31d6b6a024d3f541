"""
Pydantic schemas for accounts.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserBase(BaseModel):
    """Base schema for account data"""
    full_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr


class UserCreate(UserBase):
    """Schema for registering an account"""
    password: str = Field(..., min_length=1)


class UserOut(UserBase):
    """Schema for account output. Never carries the password hash or a pending OTP."""
    id: str
    is_verified: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ChangePasswordIn(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)


class RegisterOut(BaseModel):
    message: str
    user: UserOut


# ==================== Profile ====================

class PrivacyIn(BaseModel):
    """Visibility flags; omitted flags keep their current value."""
    show_email: Optional[bool] = None
    show_whatsapp: Optional[bool] = None
    show_address: Optional[bool] = None
    show_department: Optional[bool] = None
    show_level: Optional[bool] = None


class PrivacyOut(BaseModel):
    show_email: bool = False
    show_whatsapp: bool = False
    show_address: bool = False
    show_department: bool = False
    show_level: bool = False

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdate(BaseModel):
    """
    Partial profile update.

    Omitted or empty fields keep their current value. The email is not
    editable here: it is the login key and was proven by OTP.
    """
    full_name: Optional[str] = Field(None, max_length=100)
    department: Optional[str] = Field(None, max_length=100)
    level: Optional[str] = Field(None, max_length=50)
    bio: Optional[str] = None
    whatsapp_num: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=255)
    privacy: Optional[PrivacyIn] = None


class ProfileOut(UserOut):
    """The owner's view of their profile."""
    department: Optional[str] = None
    level: Optional[str] = None
    bio: Optional[str] = None
    whatsapp_num: Optional[str] = None
    address: Optional[str] = None
    profile_url: Optional[str] = None
    privacy: Optional[PrivacyOut] = None


class ProfileUpdateOut(BaseModel):
    message: str
    user: ProfileOut


class ProfilePictureIn(BaseModel):
    profile_url: str = Field(..., min_length=1, max_length=500)


class PublicProfileOut(BaseModel):
    """
    Another student's view of a profile.

    Contact fields are only present when the owner's privacy settings allow.
    """
    id: str
    full_name: str
    bio: Optional[str] = None
    profile_url: Optional[str] = None
    created_at: Optional[datetime] = None
    email: Optional[str] = None
    whatsapp_num: Optional[str] = None
    address: Optional[str] = None
    department: Optional[str] = None
    level: Optional[str] = None
    privacy: Optional[PrivacyOut] = None
