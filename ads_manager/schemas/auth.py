"""
Authentication schemas
"""
from datetime import datetime
from typing import Optional
from pydantic import EmailStr, Field

from ads_manager.schemas.common import ApiModel


class User(ApiModel):
    """Dashboard user as returned by /auth/me"""
    id: str
    email: str
    name: Optional[str] = None
    avatar: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def display_name(self) -> str:
        return self.name or self.email


class AuthResult(ApiModel):
    """Login/register response"""
    user: User
    token: str


class LoginRequest(ApiModel):
    """Login request"""
    email: EmailStr
    password: str = Field(min_length=1)


class RegisterRequest(ApiModel):
    """User registration request"""
    name: str = Field(min_length=2)
    email: EmailStr
    password: str = Field(min_length=8)


class ProfileUpdate(ApiModel):
    """Profile update request"""
    name: Optional[str] = None
    email: Optional[EmailStr] = None


class PasswordChange(ApiModel):
    """Password change request"""
    current_password: str
    new_password: str = Field(min_length=8)
