"""
Agent model
"""
from sqlalchemy import Column, String, JSON, DateTime, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from .base import BaseModel, TimestampMixin, TenantMixin


class Agent(BaseModel, TenantMixin, TimestampMixin):
    """Call-center agent whose transcripts are scored"""
    __tablename__ = "agents"

    external_id = Column(String(100), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255))
    phone = Column(String(50))
    department = Column(String(100))
    position = Column(String(100))
    hire_date = Column(DateTime(timezone=True))
    status = Column(String(50), default="active", nullable=False)  # active, inactive, training, terminated
    skills = Column(JSON, default=list)
    primary_team = Column(String(100))
    supervisor_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"))

    # Performance metrics
    current_period = Column(JSON(none_as_null=True))
    historical = Column(JSON, default=list)  # newest first
    last_scorecard = Column(JSON(none_as_null=True))
    performance_updated_at = Column(DateTime(timezone=True))

    agent_metadata = Column("metadata", JSON, default=dict)

    # Relationships
    transcripts = relationship("Transcript", back_populates="agent")

    __table_args__ = (
        UniqueConstraint('organization_id', 'external_id', name='_agent_org_external_uc'),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def performance_metrics(self) -> dict:
        return {
            "current_period": self.current_period,
            "historical": self.historical or [],
            "last_scorecard": self.last_scorecard,
            "last_updated": self.performance_updated_at,
        }
