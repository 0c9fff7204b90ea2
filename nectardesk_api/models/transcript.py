"""
Transcript and call type models
"""
from datetime import datetime
from sqlalchemy import Column, String, Text, Float, Boolean, JSON, DateTime, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from .base import BaseModel, TimestampMixin, TenantMixin


class Transcript(BaseModel, TenantMixin):
    """Raw call transcript with its analysis and call details"""
    __tablename__ = "transcripts"

    agent_id = Column(Uuid(as_uuid=True), ForeignKey("agents.id", ondelete="SET NULL"), index=True)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"))
    raw_transcript = Column(Text, nullable=False)
    analysis = Column(JSON(none_as_null=True))
    call_type = Column(String(100), default="auto", nullable=False)
    source = Column(String(20), default="web", nullable=False)  # web, api

    # Call details
    duration = Column(Float)
    talk_time = Column(Float)
    waiting_time = Column(Float)
    direction = Column(String(20))  # inbound, outbound
    call_started_at = Column(DateTime(timezone=True))
    call_ended_at = Column(DateTime(timezone=True))

    transcript_metadata = Column("metadata", JSON, default=dict)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False, index=True)

    # Relationships
    agent = relationship("Agent", back_populates="transcripts")

    @property
    def scorecard(self):
        if not self.analysis:
            return None
        return self.analysis.get("scorecard")

    @property
    def call_details(self) -> dict:
        return {
            "duration": self.duration,
            "talk_time": self.talk_time,
            "waiting_time": self.waiting_time,
            "direction": self.direction,
            "started_at": self.call_started_at,
            "ended_at": self.call_ended_at,
        }


class CallType(BaseModel, TimestampMixin):
    """Analysis prompt profile, global or owned by one organization"""
    __tablename__ = "call_types"

    code = Column(String(100), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    organization_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=True,
        index=True
    )
    is_global = Column(Boolean, default=False, nullable=False)
    prompt_template = Column(Text, nullable=False)
    json_structure = Column(JSON, default=dict)
    active = Column(Boolean, default=True, nullable=False)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"))

    __table_args__ = (
        UniqueConstraint('code', 'organization_id', name='_call_type_code_org_uc'),
    )
