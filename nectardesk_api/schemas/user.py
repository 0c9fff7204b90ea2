"""
User schemas
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from uuid import UUID

from .base import BaseSchema, Pagination
from ..core.rbac import UserRole


class UserBase(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        value = value.strip().lower()
        if "@" not in value:
            raise ValueError("Invalid email address")
        return value


# Create schemas
class UserCreate(UserBase):
    password: str = Field(..., min_length=8, description="Password for new user")
    role: UserRole = UserRole.USER
    organization_id: Optional[UUID] = None


class MasterAdminCreate(UserBase):
    password: str = Field(..., min_length=8)


# Update schemas
class UserUpdate(BaseModel):
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: Optional[str]) -> Optional[str]:
        return value.strip().lower() if value else value


class PasswordReset(BaseModel):
    new_password: str = Field(..., min_length=8)


# Response schemas
class UserResponse(BaseSchema):
    id: UUID
    email: str
    first_name: str
    last_name: str
    organization_id: Optional[UUID] = None
    role: str
    is_master_admin: bool = False
    is_active: bool = True
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserListResponse(BaseSchema):
    data: List[UserResponse]
    pagination: Pagination
