"""
Transcript and call type repositories
"""
from typing import Optional, List, Tuple, Dict, Any
from datetime import datetime
from sqlalchemy.orm import Session, defer
from sqlalchemy import func, or_
from uuid import UUID

from .base_repository import BaseRepository
from ..models.transcript import Transcript, CallType


class TranscriptRepository(BaseRepository[Transcript]):
    """Repository for transcript operations"""

    def __init__(self, db: Session):
        super().__init__(Transcript, db)

    def list_transcripts(
        self,
        organization_id: Optional[UUID] = None,
        *,
        call_type: Optional[str] = None,
        source: Optional[str] = None,
        agent_id: Optional[UUID] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Transcript], int]:
        """Newest-first page of transcripts plus the total matching count"""
        query = self.scoped(organization_id)

        if call_type:
            query = query.filter(Transcript.call_type == call_type)
        if source:
            query = query.filter(Transcript.source == source)
        if agent_id:
            query = query.filter(Transcript.agent_id == agent_id)
        if start_date:
            query = query.filter(Transcript.created_at >= start_date)
        if end_date:
            query = query.filter(Transcript.created_at <= end_date)

        total = query.count()
        transcripts = query.options(defer(Transcript.raw_transcript)).order_by(
            Transcript.created_at.desc()
        ).offset(skip).limit(limit).all()
        return transcripts, total

    def get_for_agent(self, agent_id: UUID, start_date: datetime, end_date: datetime) -> List[Transcript]:
        """Transcripts of one agent inside a window, oldest first"""
        return self.db.query(Transcript).filter(
            Transcript.agent_id == agent_id,
            Transcript.created_at >= start_date,
            Transcript.created_at <= end_date
        ).order_by(Transcript.created_at, Transcript.id).all()

    def get_scored_with_agent(self) -> List[Transcript]:
        """Every transcript with an agent and an analysis, oldest first"""
        return self.db.query(Transcript).filter(
            Transcript.agent_id.isnot(None),
            Transcript.analysis.isnot(None)
        ).order_by(Transcript.created_at, Transcript.id).all()

    def get_in_window(
        self,
        organization_id: Optional[UUID],
        start_date: datetime,
        end_date: datetime
    ) -> List[Transcript]:
        query = self.scoped(organization_id).filter(
            Transcript.created_at >= start_date,
            Transcript.created_at <= end_date
        )
        return query.order_by(Transcript.created_at).all()

    def count_for_organization(self, organization_id: UUID) -> int:
        return self.db.query(func.count(Transcript.id)).filter(
            Transcript.organization_id == organization_id
        ).scalar() or 0

    def call_type_counts(
        self,
        organization_id: Optional[UUID],
        start_date: datetime,
        end_date: datetime
    ) -> List[Dict[str, Any]]:
        query = self.db.query(Transcript.call_type, func.count(Transcript.id)).filter(
            Transcript.created_at >= start_date,
            Transcript.created_at <= end_date
        )
        if organization_id is not None:
            query = query.filter(Transcript.organization_id == organization_id)
        rows = query.group_by(Transcript.call_type).order_by(func.count(Transcript.id).desc()).all()
        return [{"call_type": call_type, "count": count} for call_type, count in rows]


class CallTypeRepository(BaseRepository[CallType]):
    """Repository for call type operations"""

    def __init__(self, db: Session):
        super().__init__(CallType, db)

    def get_visible(self, organization_id: Optional[UUID], include_all: bool = False) -> List[CallType]:
        """Active global types plus the organization's own types"""
        query = self.db.query(CallType).filter(CallType.active.is_(True))
        if not include_all:
            conditions = [CallType.is_global.is_(True)]
            if organization_id is not None:
                conditions.append(CallType.organization_id == organization_id)
            query = query.filter(or_(*conditions))
        return query.order_by(CallType.name).all()

    def get_by_code(self, code: str, organization_id: Optional[UUID]) -> Optional[CallType]:
        query = self.db.query(CallType).filter(CallType.code == code.lower())
        if organization_id is None:
            query = query.filter(CallType.organization_id.is_(None))
        else:
            query = query.filter(CallType.organization_id == organization_id)
        return query.first()
