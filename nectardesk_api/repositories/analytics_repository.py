"""
Agent performance aggregate repository
"""
from typing import Optional, List
from sqlalchemy.orm import Session
from uuid import UUID

from .base_repository import BaseRepository
from ..models.analytics import AgentPerformance


class AgentPerformanceRepository(BaseRepository[AgentPerformance]):
    """Repository for period buckets"""

    def __init__(self, db: Session):
        super().__init__(AgentPerformance, db)

    def get_bucket(self, agent_id: UUID, period_type: str, period_key: str) -> Optional[AgentPerformance]:
        return self.db.query(AgentPerformance).filter(
            AgentPerformance.agent_id == agent_id,
            AgentPerformance.period_type == period_type,
            AgentPerformance.period_key == period_key
        ).first()

    def get_recent(self, agent_id: UUID, period_type: str, limit: int) -> List[AgentPerformance]:
        """Newest buckets with at least one call"""
        return self.db.query(AgentPerformance).filter(
            AgentPerformance.agent_id == agent_id,
            AgentPerformance.period_type == period_type,
            AgentPerformance.call_count > 0
        ).order_by(AgentPerformance.period_start.desc()).limit(limit).all()

    def all_buckets(self) -> List[AgentPerformance]:
        return self.db.query(AgentPerformance).all()

    def delete_all(self) -> int:
        deleted = self.db.query(AgentPerformance).delete(synchronize_session=False)
        self.db.commit()
        return deleted
