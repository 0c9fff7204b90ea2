"""
Organization API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from .deps import get_db, get_tenant_context, require_master_admin
from ..core.rbac import Principal, TenantContext
from ..services.tenant_service import OrganizationService
from ..schemas.organization import (
    OrganizationCreate, OrganizationUpdate, OrganizationResponse, OrganizationStats,
    ApiKeyCreate, ApiKeyResponse, ApiKeyCreated
)
from ..schemas.base import MessageResponse

router = APIRouter(prefix="/organizations", tags=["Organizations"])


@router.get("/all", response_model=List[OrganizationResponse])
async def list_active_organizations(
    principal: Principal = Depends(require_master_admin),
    db: Session = Depends(get_db)
):
    """All active organizations"""
    service = OrganizationService(db)
    return await service.list_active_organizations()


@router.post("", response_model=OrganizationResponse, status_code=201)
async def create_organization(
    org_data: OrganizationCreate,
    principal: Principal = Depends(require_master_admin),
    db: Session = Depends(get_db)
):
    service = OrganizationService(db)
    return await service.create_organization(org_data, principal.user_id)


@router.get("/{org_id}", response_model=OrganizationResponse)
async def get_organization(
    org_id: UUID,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    service = OrganizationService(db)
    return await service.get_organization(context, org_id)


@router.put("/{org_id}", response_model=OrganizationResponse)
async def update_organization(
    org_id: UUID,
    org_data: OrganizationUpdate,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    service = OrganizationService(db)
    return await service.update_organization(context, org_id, org_data)


@router.delete("/{org_id}", response_model=MessageResponse)
async def deactivate_organization(
    org_id: UUID,
    principal: Principal = Depends(require_master_admin),
    db: Session = Depends(get_db)
):
    """Deactivate an organization and revoke its API keys"""
    service = OrganizationService(db)
    revoked = await service.deactivate_organization(org_id, principal.user_id)
    return MessageResponse(message=f"Organization deactivated, {revoked} API keys revoked")


# API keys

@router.post("/{org_id}/api-keys", response_model=ApiKeyCreated, status_code=201)
async def create_api_key(
    org_id: UUID,
    key_data: ApiKeyCreate,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    """Create an API key; the full key is only returned here"""
    service = OrganizationService(db)
    api_key, full_key = await service.create_api_key(context, org_id, key_data)
    return ApiKeyCreated(
        id=api_key.id,
        name=api_key.name,
        masked_key=api_key.masked_key,
        is_active=api_key.is_active,
        permissions=api_key.permissions or [],
        created_at=api_key.created_at,
        last_used=api_key.last_used,
        key=full_key
    )


@router.get("/{org_id}/api-keys", response_model=List[ApiKeyResponse])
async def list_api_keys(
    org_id: UUID,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    service = OrganizationService(db)
    return await service.list_api_keys(context, org_id)


@router.delete("/{org_id}/api-keys/{key_id}", response_model=MessageResponse)
async def revoke_api_key(
    org_id: UUID,
    key_id: UUID,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    service = OrganizationService(db)
    await service.revoke_api_key(context, org_id, key_id)
    return MessageResponse(message="API key deactivated")


@router.get("/{org_id}/stats", response_model=OrganizationStats)
async def get_organization_stats(
    org_id: UUID,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    service = OrganizationService(db)
    return await service.get_stats(context, org_id)
