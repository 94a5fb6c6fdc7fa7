"""
Authentication and user schemas.
"""
from typing import Annotated, Optional
from datetime import datetime, date
from pydantic import EmailStr, Field, StringConstraints

from kny_api.core.config import settings
from kny_api.models.user import Committee, MemberOrg, UserRole
from kny_api.schemas.common import CamelModel, Envelope

PHONE_PATTERN = r"^\d{10,15}$"

# Surrounding whitespace is dropped before length checks
Username = Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=100)]
DisplayName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]


class Address(CamelModel):
    street: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    zip_code: Optional[str] = Field(None, max_length=20)
    country: Optional[str] = Field(None, max_length=100)


class UserRegister(CamelModel):
    """Member registration request."""
    username: Username
    email: EmailStr
    password: str = Field(..., min_length=settings.PASSWORD_MIN_LENGTH)
    name: DisplayName
    age: int = Field(..., gt=0, le=150)
    birthday: Optional[date] = None
    member_org: Optional[MemberOrg] = None
    organization: Optional[str] = Field(None, max_length=200)
    committee: Optional[Committee] = None


class UserLogin(CamelModel):
    """Login request."""
    username: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    password: str = Field(..., min_length=1)


class ProfileUpdate(CamelModel):
    """Self-service profile update."""
    name: Optional[DisplayName] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    birthday: Optional[date] = None
    organization: Optional[str] = Field(None, max_length=200)
    committee: Optional[Committee] = None
    address: Optional[Address] = None


class AdminUserUpdate(ProfileUpdate):
    """Admin update of any user. Passwords cannot be changed here."""
    username: Optional[Username] = None
    age: Optional[int] = Field(None, gt=0, le=150)
    member_org: Optional[MemberOrg] = None
    role: Optional[UserRole] = None
    is_approved: Optional[bool] = None
    password: Optional[str] = None


class PasswordChange(CamelModel):
    """Password change request."""
    current_password: str
    new_password: str = Field(..., min_length=settings.PASSWORD_MIN_LENGTH)


class RoleUpdate(CamelModel):
    role: Optional[str] = None


class UserResponse(CamelModel):
    """User record as returned by the API. Never includes the password."""
    id: str
    username: str
    email: str
    name: str
    age: int
    birthday: Optional[date] = None
    phone: Optional[str] = None
    address: Address
    member_org: Optional[str] = None
    organization: Optional[str] = None
    committee: Optional[str] = None
    profile_picture: Optional[str] = None
    role: str
    is_approved: bool
    created: datetime
    updated: datetime


class UserData(CamelModel):
    user: UserResponse


class UserEnvelope(Envelope):
    data: UserData


class TokenEnvelope(Envelope):
    token: str
    data: UserData


class UserListData(CamelModel):
    users: list[UserResponse]


class UserListEnvelope(Envelope):
    results: int
    data: UserListData
