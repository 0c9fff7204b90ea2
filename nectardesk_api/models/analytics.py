"""
Aggregate analytics models
"""
from sqlalchemy import Column, String, Integer, Float, JSON, DateTime, ForeignKey, UniqueConstraint, Uuid, Index
from sqlalchemy.orm import relationship

from .base import BaseModel, TenantMixin
from ..utils.metrics_utils import MetricTotals


class AgentPerformance(BaseModel, TenantMixin):
    """
    Period bucket for one agent.

    metric_sums and metric_counts only ever grow; averages are derived from
    them on read. metric_averages is a cache written by the normalization
    pass and is never fed back into the sums.
    """
    __tablename__ = "agent_performance"

    agent_id = Column(Uuid(as_uuid=True), ForeignKey("agents.id", ondelete="CASCADE"), nullable=False)
    period_type = Column(String(20), nullable=False)  # daily, weekly, monthly, quarterly
    period_key = Column(String(20), nullable=False)
    period_start = Column(DateTime(timezone=True), nullable=False)
    period_end = Column(DateTime(timezone=True), nullable=False)

    metric_sums = Column(JSON, default=dict)
    metric_counts = Column(JSON, default=dict)
    metric_averages = Column(JSON(none_as_null=True))
    call_count = Column(Integer, default=0, nullable=False)
    total_duration = Column(Float, default=0.0, nullable=False)
    last_updated = Column(DateTime(timezone=True))

    # Relationships
    agent = relationship("Agent")

    __table_args__ = (
        UniqueConstraint('agent_id', 'period_type', 'period_key', name='_agent_period_uc'),
        Index('ix_agent_performance_lookup', 'agent_id', 'period_type', 'period_start'),
    )

    def totals(self) -> MetricTotals:
        return MetricTotals(
            sums=dict(self.metric_sums or {}),
            counts=dict(self.metric_counts or {}),
            call_count=self.call_count or 0
        )
