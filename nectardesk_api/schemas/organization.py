"""
Organization and API key schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime
from uuid import UUID
from enum import Enum

from .base import BaseSchema
from .user import UserResponse


class SubscriptionTier(str, Enum):
    FREE = "free"
    BASIC = "basic"
    PRO = "pro"
    ENTERPRISE = "enterprise"


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    TRIAL = "trial"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class OrganizationFeatures(BaseModel):
    max_users: int = Field(1, ge=0)
    max_transcripts: int = Field(10, ge=0)
    api_access: bool = False
    custom_branding: bool = False
    advanced_analytics: bool = False


class FeaturesUpdate(BaseModel):
    max_users: Optional[int] = Field(None, ge=0)
    max_transcripts: Optional[int] = Field(None, ge=0)
    api_access: Optional[bool] = None
    custom_branding: Optional[bool] = None
    advanced_analytics: Optional[bool] = None


# Create schemas
class OrganizationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    contact_email: str = Field(..., min_length=3)
    code: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None
    subscription_tier: SubscriptionTier = SubscriptionTier.FREE
    features: Optional[OrganizationFeatures] = None
    settings: Dict[str, Any] = {}


# Update schemas
class OrganizationUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    contact_email: Optional[str] = None
    description: Optional[str] = None
    settings: Optional[Dict[str, Any]] = None
    billing_info: Optional[Dict[str, Any]] = None


class SubscriptionUpdate(BaseModel):
    subscription_tier: Optional[SubscriptionTier] = None
    subscription_status: Optional[SubscriptionStatus] = None
    subscription_start: Optional[datetime] = None
    subscription_end: Optional[datetime] = None


class StatusUpdate(BaseModel):
    is_active: bool


# Response schemas
class OrganizationSummary(BaseSchema):
    id: UUID
    name: str
    code: str
    is_master: bool = False
    is_active: bool = True


class OrganizationResponse(OrganizationSummary):
    description: Optional[str] = None
    contact_email: str
    subscription_tier: Optional[str] = None
    subscription_status: Optional[str] = None
    subscription_start: Optional[datetime] = None
    subscription_end: Optional[datetime] = None
    features: OrganizationFeatures
    settings: Optional[Dict[str, Any]] = None
    total_transcripts: int = 0
    total_users: int = 0
    api_calls: int = 0
    last_active: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class OrganizationWithUserCount(OrganizationResponse):
    user_count: int = 0


class OrganizationStats(BaseSchema):
    organization_id: UUID
    active_api_key_count: int
    transcript_count: int
    user_count: int
    agent_count: int
    total_transcripts: int
    api_calls: int
    timestamp: datetime


# API keys
class ApiKeyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    permissions: List[str] = ["read", "write"]


class ApiKeyResponse(BaseSchema):
    id: UUID
    name: str
    masked_key: str
    is_active: bool
    permissions: List[str] = []
    created_at: Optional[datetime] = None
    last_used: Optional[datetime] = None
    deactivated_at: Optional[datetime] = None


class ApiKeyCreated(ApiKeyResponse):
    key: str = Field(..., description="Full key, shown only once")


class OrganizationDetails(BaseSchema):
    organization: OrganizationResponse
    users: List[UserResponse]
