"""
Pydantic schemas for authentication flows.
"""

from pydantic import BaseModel, EmailStr, Field

from unimart.core.otp import OtpPurpose
from unimart.schemas.user import UserOut


class Login(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class LoginOut(Token):
    user: UserOut


class VerifyOtpIn(BaseModel):
    email: EmailStr
    otp: str = Field(..., min_length=1, max_length=6)
    purpose: OtpPurpose


class ResendOtpIn(BaseModel):
    email: EmailStr


class ForgotPasswordIn(BaseModel):
    email: EmailStr


class ResetPasswordIn(BaseModel):
    email: EmailStr
    otp: str = Field(..., min_length=1, max_length=6)
    new_password: str = Field(..., min_length=1)


class MessageOut(BaseModel):
    message: str
