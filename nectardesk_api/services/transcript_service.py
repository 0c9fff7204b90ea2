"""
Transcript service
"""
from typing import Optional, List, Tuple, Dict, Any
from sqlalchemy.orm import Session
from datetime import datetime, timedelta
from collections import defaultdict
from uuid import UUID
import logging

from .base_service import BaseService
from .analytics_service import AgentAnalyticsService
from ..repositories.transcript_repository import TranscriptRepository, CallTypeRepository
from ..repositories.tenant_repository import OrganizationRepository
from ..repositories.user_repository import AgentRepository
from ..models.transcript import Transcript, CallType
from ..core.rbac import TenantContext, RBACManager
from ..core.exceptions import ValidationError, NotFoundError, ConflictError, AuthorizationError
from ..schemas.transcript import TranscriptCreate, TranscriptAnalysis, CallTypeCreate, CallTypeUpdate
from ..utils.metrics_utils import SCORE_FIELDS
from ..utils.period_utils import to_naive_utc

logger = logging.getLogger(__name__)


class TranscriptService(BaseService[TranscriptRepository]):
    """Service for transcript operations"""

    def __init__(self, db: Session):
        super().__init__(TranscriptRepository, db)
        self.org_repo = OrganizationRepository(db)
        self.agent_repo = AgentRepository(db)
        self.analytics = AgentAnalyticsService(db)

    async def list_transcripts(
        self,
        context: TenantContext,
        *,
        call_type: Optional[str] = None,
        source: Optional[str] = None,
        agent_id: Optional[UUID] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Transcript], int]:
        return self.repository.list_transcripts(
            context.scope,
            call_type=call_type,
            source=source,
            agent_id=agent_id,
            start_date=to_naive_utc(start_date),
            end_date=to_naive_utc(end_date),
            skip=skip,
            limit=limit
        )

    async def get_transcript(self, context: TenantContext, transcript_id: UUID) -> Transcript:
        return self.repository.get_or_404(transcript_id, context.scope)

    async def create_transcript(self, context: TenantContext, data: TranscriptCreate) -> Transcript:
        """
        Store a transcript, bump the organization's counter and feed the rollups.

        The counter update is a separate write; a failure after the insert
        leaves the counter behind.
        """
        organization_id = context.target_organization(data.organization_id)
        if organization_id is None:
            raise ValidationError("organization_id is required", field="organization_id")

        organization = self.org_repo.get(organization_id)
        if not organization:
            raise NotFoundError("Organization", str(organization_id))

        if data.agent_id is not None and not self.agent_repo.get(data.agent_id, organization_id):
            raise ValidationError("Agent does not belong to this organization", field="agent_id")

        details = data.call_details.model_dump() if data.call_details else {}
        obj_in = {
            "organization_id": organization_id,
            "agent_id": data.agent_id,
            "created_by": context.principal.user_id,
            "raw_transcript": data.raw_transcript,
            "analysis": data.analysis.model_dump() if data.analysis else None,
            "call_type": (data.call_type or "auto").strip().lower(),
            "source": "api" if context.principal.via_api_key else "web",
            "duration": details.get("duration"),
            "talk_time": details.get("talk_time"),
            "waiting_time": details.get("waiting_time"),
            "direction": details["direction"].value if details.get("direction") else None,
            "call_started_at": to_naive_utc(details.get("started_at")),
            "call_ended_at": to_naive_utc(details.get("ended_at")),
            "transcript_metadata": data.metadata,
        }
        if data.created_at is not None:
            obj_in["created_at"] = to_naive_utc(data.created_at)

        transcript = self.repository.create(obj_in=obj_in)
        self.org_repo.increment_usage(organization, "total_transcripts")

        await self.log_action("create_transcript", "transcript", str(transcript.id), context.principal.actor)
        await self._feed_rollup(transcript)
        return transcript

    async def update_analysis(
        self,
        context: TenantContext,
        transcript_id: UUID,
        analysis: TranscriptAnalysis
    ) -> Transcript:
        """Attach an analysis; only the first scorecard of a transcript is rolled up"""
        transcript = await self.get_transcript(context, transcript_id)
        already_scored = bool(transcript.scorecard)

        transcript = self.repository.update(db_obj=transcript, obj_in={"analysis": analysis.model_dump()})
        await self.log_action("update_analysis", "transcript", str(transcript.id), context.principal.actor)

        if already_scored:
            logger.info(f"Transcript {transcript.id} was already scored; rollups need a rebuild to reflect the change")
        else:
            await self._feed_rollup(transcript)
        return transcript

    async def _feed_rollup(self, transcript: Transcript) -> None:
        try:
            result = await self.analytics.record_transcript(transcript)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update rollups for transcript {transcript.id}: {e}", exc_info=True)
            return
        if not result["success"]:
            logger.debug(f"Transcript {transcript.id} not rolled up: {result['reason']}")

    async def delete_transcript(self, context: TenantContext, transcript_id: UUID) -> None:
        transcript = await self.get_transcript(context, transcript_id)
        self.db.delete(transcript)
        self.db.commit()
        await self.log_action("delete_transcript", "transcript", str(transcript_id), context.principal.actor)

    async def get_analytics_summary(
        self,
        context: TenantContext,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """Per-day counts and score averages plus call type counts"""
        end_date = to_naive_utc(end_date) or datetime.utcnow()
        start_date = to_naive_utc(start_date) or end_date - timedelta(days=30)

        transcripts = self.repository.get_in_window(context.scope, start_date, end_date)

        days: Dict[str, Dict[str, Any]] = defaultdict(lambda: {"count": 0, "sums": {}, "counts": {}})
        for transcript in transcripts:
            day = days[transcript.created_at.strftime("%Y-%m-%d")]
            day["count"] += 1
            scorecard = transcript.scorecard or {}
            for name in SCORE_FIELDS:
                value = scorecard.get(name)
                if isinstance(value, (int, float)) and not isinstance(value, bool):
                    day["sums"][name] = day["sums"].get(name, 0.0) + value
                    day["counts"][name] = day["counts"].get(name, 0) + 1

        timeline = []
        for date_key in sorted(days):
            day = days[date_key]
            entry = {"date": date_key, "count": day["count"]}
            for name in SCORE_FIELDS:
                count = day["counts"].get(name)
                entry[f"avg_{name}"] = day["sums"][name] / count if count else None
            timeline.append(entry)

        return {
            "timeline": timeline,
            "call_types": self.repository.call_type_counts(context.scope, start_date, end_date),
            "start_date": start_date,
            "end_date": end_date
        }


class CallTypeService(BaseService[CallTypeRepository]):
    """Service for call type operations"""

    def __init__(self, db: Session):
        super().__init__(CallTypeRepository, db)

    async def list_call_types(self, context: TenantContext) -> List[CallType]:
        return self.repository.get_visible(context.organization_id, include_all=context.bypass)

    async def get_call_type(self, context: TenantContext, call_type_id: UUID) -> CallType:
        call_type = self.repository.get(call_type_id)
        if not call_type:
            raise NotFoundError("Call type", str(call_type_id))
        if not (call_type.is_global or context.can_access(call_type.organization_id)):
            raise AuthorizationError("Access denied to this call type")
        return call_type

    async def create_call_type(self, context: TenantContext, data: CallTypeCreate) -> CallType:
        principal = context.principal
        if data.is_global:
            if not principal.is_master_admin:
                raise AuthorizationError("Only master admins can create global call types")
            organization_id = None
        else:
            if not RBACManager.is_org_admin(principal):
                raise AuthorizationError("Organization admin access required")
            organization_id = context.organization_id
            if organization_id is None:
                raise ValidationError("Organization context required", field="organization_id")

        if self.repository.get_by_code(data.code, organization_id):
            raise ConflictError("Call type with this code already exists", {"code": data.code})

        call_type = self.repository.create(obj_in={
            **data.model_dump(),
            "organization_id": organization_id,
            "created_by": principal.user_id,
            "active": True
        })
        await self.log_action("create_call_type", "call_type", str(call_type.id), principal.actor)
        return call_type

    async def update_call_type(self, context: TenantContext, call_type_id: UUID, data: CallTypeUpdate) -> CallType:
        call_type = await self.get_call_type(context, call_type_id)
        if not RBACManager.can_modify_call_type(context.principal, call_type, context.is_master_org):
            raise AuthorizationError("Not allowed to modify this call type")

        update_data = data.model_dump(exclude_unset=True)
        call_type = self.repository.update(db_obj=call_type, obj_in=update_data)
        await self.log_action("update_call_type", "call_type", str(call_type_id), context.principal.actor, update_data)
        return call_type

    async def delete_call_type(self, context: TenantContext, call_type_id: UUID) -> CallType:
        """Soft delete so existing transcripts keep a valid reference"""
        call_type = await self.get_call_type(context, call_type_id)
        if not RBACManager.can_modify_call_type(context.principal, call_type, context.is_master_org):
            raise AuthorizationError("Not allowed to delete this call type")

        call_type = self.repository.update(db_obj=call_type, obj_in={"active": False})
        await self.log_action("delete_call_type", "call_type", str(call_type_id), context.principal.actor)
        return call_type
