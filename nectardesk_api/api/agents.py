"""
Agent and agent performance API endpoints
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional, List
from datetime import datetime
from uuid import UUID
import logging

from .deps import get_db, get_tenant_context, require_org_admin, require_master_admin, get_scheduler
from ..core.rbac import Principal, TenantContext
from ..core.exceptions import ValidationError, NotFoundError
from ..services.agent_service import AgentService
from ..services.analytics_service import AgentAnalyticsService
from ..services.scheduler_service import JobScheduler
from ..jobs.agent_metrics_job import JOB_NAME
from ..schemas.agent import AgentCreate, AgentUpdate, AgentResponse, AgentListResponse, AgentStatus, AgentSortField
from ..schemas.analytics import (
    PerformanceMetrics, PerformanceTrends, PerformanceSortField, UpdateMetricsRequest,
    UpdateAllResponse, AgentPerformanceEntry, RebuildResult, JobRunResponse, PeriodType
)
from ..schemas.base import Pagination, clamp_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/agents", tags=["Agents"])


def _require_organization(context: TenantContext, organization_id: Optional[UUID]) -> UUID:
    target = context.target_organization(organization_id)
    if target is None:
        raise ValidationError("organization_id is required", field="organization_id")
    return target


# Organization-wide analytics; declared before /{agent_id}

@router.get("/analytics/performance", response_model=List[AgentPerformanceEntry])
async def get_organization_performance(
    sort_by: PerformanceSortField = PerformanceSortField.OVERALL_SCORE,
    status: Optional[AgentStatus] = AgentStatus.ACTIVE,
    limit: int = Query(100, ge=1, le=1000),
    organization_id: Optional[UUID] = None,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    """Agents with their current-period metrics, best first"""
    service = AgentAnalyticsService(db)
    agents = await service.get_organization_agent_performance(
        _require_organization(context, organization_id),
        limit=limit,
        sort_by=sort_by.value,
        status=status.value if status else None
    )
    return [
        AgentPerformanceEntry(
            id=agent.id,
            external_id=agent.external_id,
            name=agent.full_name,
            email=agent.email,
            department=agent.department,
            position=agent.position,
            status=agent.status,
            performance_metrics=agent.performance_metrics
        )
        for agent in agents
    ]


@router.post("/analytics/update-all", response_model=UpdateAllResponse)
async def update_all_agent_metrics(
    data: Optional[UpdateMetricsRequest] = None,
    organization_id: Optional[UUID] = None,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    """Recompute the current period of every active agent in the organization"""
    data = data or UpdateMetricsRequest()
    service = AgentAnalyticsService(db)
    return await service.update_all_agent_metrics(
        _require_organization(context, organization_id),
        start_date=data.start_date,
        end_date=data.end_date,
        save_historical=data.save_historical,
        period_name=data.period_name
    )


@router.post("/analytics/trigger-update-job", response_model=JobRunResponse)
async def trigger_update_job(
    context: TenantContext = Depends(require_org_admin),
    scheduler: JobScheduler = Depends(get_scheduler)
):
    """Run the scheduled metrics job now"""
    logger.info(f"Metrics job triggered manually by {context.principal.actor}")
    try:
        result = await scheduler.run_job_now(JOB_NAME)
    except KeyError:
        raise NotFoundError("Scheduled job", JOB_NAME)
    return JobRunResponse(job=JOB_NAME, started=True, result=result)


@router.post("/analytics/rebuild", response_model=RebuildResult)
async def rebuild_aggregates(
    principal: Principal = Depends(require_master_admin),
    db: Session = Depends(get_db)
):
    """Drop and replay every period bucket from the stored transcripts"""
    logger.info(f"Aggregate rebuild requested by {principal.actor}")
    service = AgentAnalyticsService(db)
    return await service.rebuild_aggregates()


# Agent CRUD

@router.get("", response_model=AgentListResponse)
async def list_agents(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    status: Optional[AgentStatus] = None,
    search: Optional[str] = None,
    sort_by: AgentSortField = AgentSortField.LAST_NAME,
    sort_desc: bool = False,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    limit = clamp_limit(limit)
    service = AgentService(db)
    agents, total = await service.list_agents(
        context,
        status=status.value if status else None,
        search=search,
        sort_by=sort_by.value,
        sort_desc=sort_desc,
        skip=(page - 1) * limit,
        limit=limit
    )
    return AgentListResponse(data=agents, pagination=Pagination.build(total, page, limit))


@router.post("", response_model=AgentResponse, status_code=201)
async def create_agent(
    agent_data: AgentCreate,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    service = AgentService(db)
    return await service.create_agent(context, agent_data)


@router.get("/{agent_id}", response_model=AgentResponse)
async def get_agent(
    agent_id: UUID,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    service = AgentService(db)
    return await service.get_agent(context, agent_id)


@router.put("/{agent_id}", response_model=AgentResponse)
async def update_agent(
    agent_id: UUID,
    agent_data: AgentUpdate,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    service = AgentService(db)
    return await service.update_agent(context, agent_id, agent_data)


@router.delete("/{agent_id}", response_model=AgentResponse)
async def delete_agent(
    agent_id: UUID,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    """Mark an agent inactive"""
    service = AgentService(db)
    return await service.delete_agent(context, agent_id)


# Per-agent performance

@router.get("/{agent_id}/performance", response_model=PerformanceMetrics)
async def get_agent_performance(
    agent_id: UUID,
    update_metrics: bool = False,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    """Stored metrics, optionally recomputed first for a window"""
    service = AgentAnalyticsService(db)
    agent = await service.get_agent(agent_id, context.scope)

    if update_metrics:
        metrics = await service.update_agent_performance_metrics(
            agent.id,
            start_date=start_date,
            end_date=end_date,
            organization_id=context.scope
        )
        if metrics is not None:
            return metrics
    return agent.performance_metrics


@router.get("/{agent_id}/performance-trends", response_model=PerformanceTrends)
async def get_agent_performance_trends(
    agent_id: UUID,
    period_type: str = PeriodType.MONTHLY.value,
    limit: int = Query(12, ge=1, le=100),
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    """Period buckets in chronological order; unknown period types fall back to monthly"""
    service = AgentAnalyticsService(db)
    return await service.get_agent_performance_trends(
        agent_id, period_type=period_type, limit=limit, organization_id=context.scope
    )
