"""
Agent performance analytics service

Two ways of summarising an agent's transcripts share one aggregation core
(utils.metrics_utils):

* the full recompute scans a date window and writes the agent's
  ``current_period`` (plus an optional historical snapshot);
* the incremental rollup adds each newly scored transcript to its daily,
  weekly, monthly and quarterly buckets.

Buckets only store raw sums and counts. Averages are always derived from
them, so normalizing any number of times gives the same result.
"""
from typing import Optional, List, Dict, Any
from sqlalchemy.orm import Session
from datetime import datetime, timedelta
from uuid import UUID
import logging

from .base_service import BaseService
from ..repositories.analytics_repository import AgentPerformanceRepository
from ..repositories.user_repository import AgentRepository
from ..repositories.transcript_repository import TranscriptRepository
from ..models.analytics import AgentPerformance
from ..models.agent import Agent
from ..models.transcript import Transcript
from ..core.config import settings
from ..core.exceptions import NotFoundError
from ..utils.metrics_utils import MetricSample, compute_aggregate, SCORE_FIELDS
from ..utils.period_utils import (
    PERIOD_TYPES, TREND_PERIOD_TYPES, calculate_period_info, format_period_label, to_naive_utc
)

logger = logging.getLogger(__name__)

METRIC_SORT_FIELDS = set(SCORE_FIELDS)


def _round(value: Optional[float]) -> Optional[float]:
    return round(value, 1) if value is not None else None


class AgentAnalyticsService(BaseService[AgentPerformanceRepository]):
    """Service for agent performance metrics and period rollups"""

    def __init__(
        self,
        db: Session,
        historical_limit: Optional[int] = None,
        window_days: Optional[int] = None
    ):
        super().__init__(AgentPerformanceRepository, db)
        self.agent_repo = AgentRepository(db)
        self.transcript_repo = TranscriptRepository(db)
        self.historical_limit = historical_limit or settings.historical_limit
        self.window_days = window_days or settings.agent_metrics_window_days

    # Full recompute

    async def update_agent_performance_metrics(
        self,
        agent_id: UUID,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        save_historical: bool = False,
        period_name: Optional[str] = None,
        organization_id: Optional[UUID] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Recompute an agent's current period from the transcripts in a window.

        Returns the agent's performance metrics, or None when the window has
        no transcripts (the stored metrics are then left untouched).
        """
        agent = self.agent_repo.get(agent_id, organization_id)
        if not agent:
            raise NotFoundError("Agent", str(agent_id))

        end_date = to_naive_utc(end_date) or datetime.utcnow()
        start_date = to_naive_utc(start_date) or end_date - timedelta(days=self.window_days)

        transcripts = self.transcript_repo.get_for_agent(agent.id, start_date, end_date)
        if not transcripts:
            logger.info(f"No transcripts for agent {agent.id} between {start_date} and {end_date}")
            return None

        aggregate = compute_aggregate(MetricSample.from_transcript(t) for t in transcripts)
        current_period = {
            "start_date": start_date.isoformat(),
            "end_date": end_date.isoformat(),
            "call_count": aggregate.call_count,
            "average_scores": aggregate.average_scores,
            "avg_call_duration": aggregate.avg_call_duration,
            "avg_talk_time": aggregate.avg_talk_time,
            "avg_waiting_time": aggregate.avg_waiting_time,
        }
        agent.current_period = current_period

        if save_historical:
            snapshot = {
                **current_period,
                "period_name": period_name or start_date.strftime("%b %Y"),
                "common_strengths": aggregate.common_strengths,
                "common_areas_for_improvement": aggregate.common_areas_for_improvement,
            }
            # Newest first, oldest dropped past the limit
            agent.historical = [snapshot] + list(agent.historical or [])[: self.historical_limit - 1]

        agent.performance_updated_at = datetime.utcnow()
        self.db.add(agent)
        self.db.commit()
        self.db.refresh(agent)

        logger.info(
            f"Updated performance metrics for agent {agent.id}: "
            f"{aggregate.call_count} calls, historical={save_historical}"
        )
        return agent.performance_metrics

    async def update_all_agent_metrics(
        self,
        organization_id: UUID,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        save_historical: bool = False,
        period_name: Optional[str] = None
    ) -> Dict[str, Any]:
        """Recompute every active agent; one agent's failure does not stop the rest"""
        agents = self.agent_repo.get_active_by_organization(organization_id)
        updated = failed = skipped = 0

        for agent in agents:
            try:
                result = await self.update_agent_performance_metrics(
                    agent.id,
                    start_date=start_date,
                    end_date=end_date,
                    save_historical=save_historical,
                    period_name=period_name
                )
            except Exception as e:
                self.db.rollback()
                failed += 1
                logger.error(f"Failed to update metrics for agent {agent.id}: {e}", exc_info=True)
                continue

            if result is None:
                skipped += 1
            else:
                updated += 1

        logger.info(
            f"Organization {organization_id}: {updated} agents updated, "
            f"{skipped} without transcripts, {failed} failed"
        )
        return {
            "success": True,
            "agents_updated": updated,
            "agents_failed": failed,
            "agents_skipped": skipped
        }

    async def get_organization_agent_performance(
        self,
        organization_id: UUID,
        limit: int = 100,
        sort_by: str = "overall_score",
        status: Optional[str] = "active"
    ) -> List[Agent]:
        """Agents with their current-period metrics, best first"""
        agents = self.agent_repo.get_by_organization(organization_id, status=status)

        if sort_by == "last_name":
            agents.sort(key=lambda a: (a.last_name or "").lower())
        else:
            def metric(agent: Agent) -> float:
                period = agent.current_period or {}
                if sort_by == "call_count":
                    value = period.get("call_count")
                else:
                    field = sort_by if sort_by in METRIC_SORT_FIELDS else "overall_score"
                    value = (period.get("average_scores") or {}).get(field)
                # Agents without a value sort last
                return value if value is not None else float("-inf")

            agents.sort(key=metric, reverse=True)

        return agents[:limit]

    # Incremental rollup

    async def record_transcript(self, transcript: Transcript) -> Dict[str, Any]:
        """Add one scored transcript to its agent's period buckets"""
        sample = MetricSample.from_transcript(transcript)

        if not sample.has_scorecard:
            return {"success": False, "reason": "no_scorecard"}
        if not transcript.agent_id:
            return {"success": False, "reason": "invalid_agent_id"}

        agent = self.agent_repo.get(transcript.agent_id)
        if not agent:
            logger.warning(f"Transcript {transcript.id} references missing agent {transcript.agent_id}")
            return {"success": False, "reason": "agent_not_found"}

        created_at = to_naive_utc(transcript.created_at) or datetime.utcnow()
        now = datetime.utcnow()
        periods = {}

        for period_type in PERIOD_TYPES:
            period = calculate_period_info(created_at, period_type)
            bucket = self.repository.get_bucket(agent.id, period_type, period.key)
            if bucket is None:
                bucket = AgentPerformance(
                    agent_id=agent.id,
                    organization_id=agent.organization_id,
                    period_type=period_type,
                    period_key=period.key,
                    metric_sums={},
                    metric_counts={},
                    call_count=0,
                    total_duration=0.0
                )
                self.db.add(bucket)

            totals = bucket.totals()
            totals.add(sample)
            bucket.metric_sums = totals.sums
            bucket.metric_counts = totals.counts
            bucket.call_count = totals.call_count
            bucket.total_duration = (bucket.total_duration or 0.0) + sample.values.get("call_duration", 0.0)
            bucket.period_start = period.start
            bucket.period_end = period.end
            bucket.last_updated = now
            periods[period_type] = period.key

        agent.last_scorecard = (transcript.analysis or {}).get("scorecard")
        agent.performance_updated_at = now
        self.db.add(agent)
        self.db.commit()

        return {"success": True, "agent_id": agent.id, "periods": periods}

    async def normalize_aggregates(self) -> int:
        """Refresh every bucket's cached averages from its sums and counts"""
        buckets = self.repository.all_buckets()
        for bucket in buckets:
            bucket.metric_averages = bucket.totals().averages()
        self.db.commit()
        logger.info(f"Normalized {len(buckets)} performance buckets")
        return len(buckets)

    async def rebuild_aggregates(self) -> Dict[str, int]:
        """Drop all buckets and replay every scored transcript, oldest first"""
        deleted = self.repository.delete_all()
        logger.info(f"Cleared {deleted} performance buckets")

        transcripts = self.transcript_repo.get_scored_with_agent()
        success_count = error_count = skipped_count = 0

        for transcript in transcripts:
            try:
                result = await self.record_transcript(transcript)
            except Exception as e:
                self.db.rollback()
                error_count += 1
                logger.error(f"Failed to replay transcript {transcript.id}: {e}", exc_info=True)
                continue

            if result["success"]:
                success_count += 1
            else:
                skipped_count += 1

        await self.normalize_aggregates()

        logger.info(
            f"Rebuilt aggregates from {len(transcripts)} transcripts: "
            f"{success_count} ok, {skipped_count} skipped, {error_count} errors"
        )
        return {
            "total_processed": len(transcripts),
            "success_count": success_count,
            "error_count": error_count,
            "skipped_count": skipped_count
        }

    # Reads

    async def get_agent(self, agent_id: UUID, organization_id: Optional[UUID] = None) -> Agent:
        return self.agent_repo.get_or_404(agent_id, organization_id)

    async def get_agent_performance_trends(
        self,
        agent_id: UUID,
        period_type: str = "monthly",
        limit: int = 12,
        organization_id: Optional[UUID] = None
    ) -> Dict[str, Any]:
        """Most recent buckets of one period type, in chronological order"""
        agent = self.agent_repo.get_or_404(agent_id, organization_id)
        if period_type not in TREND_PERIOD_TYPES:
            period_type = "monthly"

        buckets = self.repository.get_recent(agent.id, period_type, limit)
        buckets.reverse()

        trends = []
        for bucket in buckets:
            averages = bucket.totals().averages()
            point = {
                "period": format_period_label(period_type, bucket.period_key, bucket.period_start),
                "period_key": bucket.period_key,
                "period_start": bucket.period_start,
                "period_end": bucket.period_end,
                "call_count": bucket.call_count,
            }
            point.update({name: _round(averages[name]) for name in SCORE_FIELDS})
            trends.append(point)

        return {"agent_id": agent.id, "period_type": period_type, "trends": trends}
