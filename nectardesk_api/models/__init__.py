# Model exports
from .base import BaseModel, TenantMixin, TimestampMixin
from .organization import Organization, ApiKey
from .user import User
from .agent import Agent
from .transcript import Transcript, CallType
from .analytics import AgentPerformance

__all__ = [
    # Base
    "BaseModel", "TenantMixin", "TimestampMixin",

    # Tenant
    "Organization", "ApiKey",

    # People
    "User", "Agent",

    # Calls
    "Transcript", "CallType",

    # Analytics
    "AgentPerformance",
]
