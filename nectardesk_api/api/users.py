"""
User management API endpoints
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from .deps import get_db, get_tenant_context, require_org_admin
from ..core.rbac import TenantContext
from ..services.user_service import UserService
from ..schemas.user import UserCreate, UserUpdate, UserResponse, UserListResponse
from ..schemas.base import Pagination, MessageResponse, clamp_limit

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=UserListResponse)
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    role: Optional[str] = None,
    is_active: Optional[bool] = None,
    context: TenantContext = Depends(require_org_admin),
    db: Session = Depends(get_db)
):
    """Users of the caller's organization (all users for master admins)"""
    limit = clamp_limit(limit)
    service = UserService(db)
    users, total = await service.list_users(
        context, role=role, is_active=is_active, skip=(page - 1) * limit, limit=limit
    )
    return UserListResponse(data=users, pagination=Pagination.build(total, page, limit))


@router.get("/organization/{org_id}", response_model=UserListResponse)
async def list_organization_users(
    org_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    limit = clamp_limit(limit)
    service = UserService(db)
    users, total = await service.list_organization_users(
        context, org_id, skip=(page - 1) * limit, limit=limit
    )
    return UserListResponse(data=users, pagination=Pagination.build(total, page, limit))


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: UUID,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    service = UserService(db)
    return await service.get_user(context, user_id)


@router.post("", response_model=UserResponse, status_code=201)
async def create_user(
    user_data: UserCreate,
    context: TenantContext = Depends(require_org_admin),
    db: Session = Depends(get_db)
):
    """Create a user in the caller's organization"""
    service = UserService(db)
    organization_id = context.target_organization(user_data.organization_id)
    return await service.create_user(user_data, organization_id, context.principal.actor)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: UUID,
    user_data: UserUpdate,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    service = UserService(db)
    return await service.update_user(context, user_id, user_data)


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: UUID,
    context: TenantContext = Depends(require_org_admin),
    db: Session = Depends(get_db)
):
    service = UserService(db)
    await service.delete_user(context, user_id)
    return MessageResponse(message="User deactivated")
