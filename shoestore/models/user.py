"""Account models"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum

from .checkout import ShippingAddress


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class User(BaseModel):
    """Account as returned to clients (no credentials)"""
    id: str
    name: str
    email: str
    role: Role = Role.USER
    phone: Optional[str] = None
    address: Optional[ShippingAddress] = None
    wishlist: list[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(min_length=8)


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    """Refresh token may also arrive as a cookie"""
    refresh_token: Optional[str] = None


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str


class AuthResponse(BaseModel):
    user: User
    access_token: str
    refresh_token: str


class UpdateInfoRequest(BaseModel):
    """Profile fields; address is merged into the stored address"""
    name: Optional[str] = Field(default=None, min_length=1)
    phone: Optional[str] = None
    address: Optional[ShippingAddress] = None


class UpdatePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(min_length=8)


class ForgotPasswordRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    password: str = Field(min_length=8)
    confirm_password: str
