"""
Pydantic schemas for the /api/auth flows.

Required fields are declared optional so that a missing field reaches the
service layer and is reported as VALIDATION_ERROR without a provider call.
"""
from __future__ import annotations

from typing import Optional

from pydantic import EmailStr, Field

from spoom.schemas.common import ApiModel


class SignUpIn(ApiModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, max_length=256)
    name: Optional[str] = Field(default=None, max_length=100)


class SignInIn(ApiModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, max_length=256)


class VerifyIn(ApiModel):
    email: Optional[EmailStr] = None
    code: Optional[str] = Field(default=None, max_length=10)
    username: Optional[str] = Field(default=None, max_length=128)


class ResendCodeIn(ApiModel):
    email: Optional[EmailStr] = None
    username: Optional[str] = Field(default=None, max_length=128)


class ForgotPasswordIn(ApiModel):
    email: Optional[EmailStr] = None


class ResetPasswordIn(ApiModel):
    email: Optional[EmailStr] = None
    code: Optional[str] = Field(default=None, max_length=10)
    password: Optional[str] = Field(default=None, max_length=256)


class RefreshIn(ApiModel):
    # Falls back to the refreshToken cookie when absent.
    refresh_token: Optional[str] = None
    username: Optional[str] = Field(default=None, max_length=128)


class TokensOut(ApiModel):
    access_token: str
    id_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_in: int
    token_type: str = "Bearer"


class AuthUserOut(ApiModel):
    id: str
    email: str
    name: Optional[str] = None
    username: Optional[str] = None
    email_verified: bool = False


class SignInOut(TokensOut):
    user: AuthUserOut


class SignUpOut(ApiModel):
    user_id: str
    username: str
    email: str
    confirmed: bool
    needs_confirmation: bool


class VerifyOut(ApiModel):
    username: str
    email: str
    confirmed: bool = True


class ResendCodeOut(ApiModel):
    username: str
    email: str
