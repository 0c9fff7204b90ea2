"""
Organization and API key models
"""
from sqlalchemy import Column, String, Integer, Boolean, JSON, ForeignKey, DateTime, Text, Uuid, func
from sqlalchemy.orm import relationship

from .base import BaseModel, TimestampMixin, TenantMixin


class Organization(BaseModel, TimestampMixin):
    """Tenant boundary for all business data"""
    __tablename__ = "organizations"

    name = Column(String(255), unique=True, nullable=False)
    code = Column(String(50), unique=True, nullable=False)
    description = Column(Text)
    contact_email = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    is_master = Column(Boolean, default=False, nullable=False)

    # Subscription
    subscription_tier = Column(String(50), default="free")  # free, basic, pro, enterprise
    subscription_status = Column(String(50), default="active")  # active, trial, expired, cancelled
    subscription_start = Column(DateTime(timezone=True))
    subscription_end = Column(DateTime(timezone=True))
    billing_info = Column(JSON, default=dict)

    # Feature flags
    max_users = Column(Integer, default=1)
    max_transcripts = Column(Integer, default=10)
    api_access = Column(Boolean, default=False)
    custom_branding = Column(Boolean, default=False)
    advanced_analytics = Column(Boolean, default=False)

    settings = Column(JSON, default=dict)

    # Usage tracking
    total_transcripts = Column(Integer, default=0)
    total_users = Column(Integer, default=0)
    api_calls = Column(Integer, default=0)
    last_active = Column(DateTime(timezone=True))

    created_by = Column(Uuid(as_uuid=True))

    # Relationships
    users = relationship("User", back_populates="organization", foreign_keys="User.organization_id")
    api_keys = relationship("ApiKey", back_populates="organization", cascade="all, delete-orphan")

    @property
    def features(self) -> dict:
        return {
            "max_users": self.max_users,
            "max_transcripts": self.max_transcripts,
            "api_access": self.api_access,
            "custom_branding": self.custom_branding,
            "advanced_analytics": self.advanced_analytics,
        }


class ApiKey(BaseModel, TenantMixin):
    """Organization-scoped API key; only a hash of the secret is stored"""
    __tablename__ = "api_keys"

    name = Column(String(255), nullable=False)
    prefix = Column(String(32), unique=True, nullable=False, index=True)
    secret_hash = Column(String(128), nullable=False)
    key_hint = Column(String(8), nullable=False)  # last characters of the secret
    is_active = Column(Boolean, default=True, nullable=False)
    permissions = Column(JSON, default=lambda: ["read", "write"])

    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"))
    deactivated_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"))
    deactivated_at = Column(DateTime(timezone=True))
    last_used = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    organization = relationship("Organization", back_populates="api_keys")

    @property
    def masked_key(self) -> str:
        """First four and last four characters of the full key"""
        return f"{self.prefix[:4]}...{self.key_hint}"
