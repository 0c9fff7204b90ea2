"""
Transcript API endpoints
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime
from uuid import UUID

from .deps import get_db, get_tenant_context
from ..core.rbac import TenantContext
from ..services.transcript_service import TranscriptService
from ..schemas.transcript import (
    TranscriptCreate, TranscriptResponse, TranscriptListResponse, AnalysisUpdate,
    TranscriptAnalyticsSummary, TranscriptSource
)
from ..schemas.base import Pagination, MessageResponse, clamp_limit

router = APIRouter(prefix="/transcripts", tags=["Transcripts"])


@router.get("/analytics/summary", response_model=TranscriptAnalyticsSummary)
async def get_analytics_summary(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    """Per-day volume and score averages, trailing 30 days by default"""
    service = TranscriptService(db)
    return await service.get_analytics_summary(context, start_date, end_date)


@router.get("", response_model=TranscriptListResponse)
async def list_transcripts(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    call_type: Optional[str] = None,
    source: Optional[TranscriptSource] = None,
    agent_id: Optional[UUID] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    """Newest transcripts first, without their raw text"""
    limit = clamp_limit(limit)
    service = TranscriptService(db)
    transcripts, total = await service.list_transcripts(
        context,
        call_type=call_type,
        source=source.value if source else None,
        agent_id=agent_id,
        start_date=start_date,
        end_date=end_date,
        skip=(page - 1) * limit,
        limit=limit
    )
    return TranscriptListResponse(data=transcripts, pagination=Pagination.build(total, page, limit))


@router.post("", response_model=TranscriptResponse, status_code=201)
async def create_transcript(
    data: TranscriptCreate,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    service = TranscriptService(db)
    return await service.create_transcript(context, data)


@router.get("/{transcript_id}", response_model=TranscriptResponse)
async def get_transcript(
    transcript_id: UUID,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    service = TranscriptService(db)
    return await service.get_transcript(context, transcript_id)


@router.put("/{transcript_id}/analysis", response_model=TranscriptResponse)
async def update_analysis(
    transcript_id: UUID,
    data: AnalysisUpdate,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    service = TranscriptService(db)
    return await service.update_analysis(context, transcript_id, data.analysis)


@router.delete("/{transcript_id}", response_model=MessageResponse)
async def delete_transcript(
    transcript_id: UUID,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    service = TranscriptService(db)
    await service.delete_transcript(context, transcript_id)
    return MessageResponse(message="Transcript deleted")
