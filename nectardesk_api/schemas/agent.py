"""
Agent schemas
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from uuid import UUID
from enum import Enum

from .base import BaseSchema, Pagination
from .analytics import PerformanceMetrics


class AgentStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    TRAINING = "training"
    TERMINATED = "terminated"


class AgentSortField(str, Enum):
    LAST_NAME = "last_name"
    FIRST_NAME = "first_name"
    EXTERNAL_ID = "external_id"
    STATUS = "status"
    CREATED_AT = "created_at"


# Base schemas
class AgentBase(BaseModel):
    external_id: str = Field(..., min_length=1, max_length=100)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: Optional[str] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    hire_date: Optional[datetime] = None
    status: AgentStatus = AgentStatus.ACTIVE
    skills: List[str] = []
    primary_team: Optional[str] = None
    supervisor_id: Optional[UUID] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: Optional[str]) -> Optional[str]:
        return value.strip().lower() if value else value


# Create schemas
class AgentCreate(AgentBase):
    organization_id: Optional[UUID] = Field(None, description="Only honoured for cross-tenant callers")
    metadata: Dict[str, Any] = {}


# Update schemas
class AgentUpdate(BaseModel):
    external_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    hire_date: Optional[datetime] = None
    status: Optional[AgentStatus] = None
    skills: Optional[List[str]] = None
    primary_team: Optional[str] = None
    supervisor_id: Optional[UUID] = None
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: Optional[str]) -> Optional[str]:
        return value.strip().lower() if value else value


# Response schemas
class AgentResponse(BaseSchema):
    id: UUID
    organization_id: UUID
    external_id: str
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    hire_date: Optional[datetime] = None
    status: str
    skills: List[str] = []
    primary_team: Optional[str] = None
    supervisor_id: Optional[UUID] = None
    performance_metrics: PerformanceMetrics
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AgentListResponse(BaseSchema):
    data: List[AgentResponse]
    pagination: Pagination
