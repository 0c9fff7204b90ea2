"""
Authentication schemas
"""
from pydantic import BaseModel, Field
from typing import Optional

from .base import BaseSchema
from .user import UserResponse, UserCreate
from .organization import OrganizationSummary


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseSchema):
    token: str
    token_type: str = "bearer"
    user: UserResponse
    organization: Optional[OrganizationSummary] = None


class MeResponse(BaseSchema):
    user: UserResponse
    organization: Optional[OrganizationSummary] = None


class RegisterRequest(UserCreate):
    pass


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8)


class ForgotPasswordRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8)
