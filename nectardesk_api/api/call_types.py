"""
Call type API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from .deps import get_db, get_tenant_context
from ..core.rbac import TenantContext
from ..services.transcript_service import CallTypeService
from ..schemas.transcript import CallTypeCreate, CallTypeUpdate, CallTypeResponse

router = APIRouter(prefix="/call-types", tags=["Call Types"])


@router.get("", response_model=List[CallTypeResponse])
async def list_call_types(
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    """Active global call types plus the organization's own"""
    service = CallTypeService(db)
    return await service.list_call_types(context)


@router.get("/{call_type_id}", response_model=CallTypeResponse)
async def get_call_type(
    call_type_id: UUID,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    service = CallTypeService(db)
    return await service.get_call_type(context, call_type_id)


@router.post("", response_model=CallTypeResponse, status_code=201)
async def create_call_type(
    data: CallTypeCreate,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    service = CallTypeService(db)
    return await service.create_call_type(context, data)


@router.put("/{call_type_id}", response_model=CallTypeResponse)
async def update_call_type(
    call_type_id: UUID,
    data: CallTypeUpdate,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    service = CallTypeService(db)
    return await service.update_call_type(context, call_type_id, data)


@router.delete("/{call_type_id}", response_model=CallTypeResponse)
async def delete_call_type(
    call_type_id: UUID,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    """Deactivate a call type"""
    service = CallTypeService(db)
    return await service.delete_call_type(context, call_type_id)
