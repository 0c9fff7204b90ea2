"""
Master admin API endpoints: every organization, its users, and the master admins
"""
from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from .deps import get_db, require_master_admin, get_email_service
from ..core.rbac import Principal, TenantContext
from ..core.exceptions import NotFoundError
from ..services.tenant_service import OrganizationService
from ..services.user_service import UserService
from ..services.email_service import EmailService
from ..schemas.organization import (
    OrganizationCreate, OrganizationResponse, OrganizationWithUserCount, OrganizationDetails,
    OrganizationStats, SubscriptionUpdate, FeaturesUpdate, StatusUpdate
)
from ..schemas.user import UserCreate, UserUpdate, UserResponse, MasterAdminCreate, PasswordReset
from ..schemas.base import MessageResponse

router = APIRouter(prefix="/master-admin", tags=["Master Admin"])


def _organization_user(service: UserService, org_id: UUID, user_id: UUID):
    user = service.repository.get(user_id, org_id)
    if not user:
        raise NotFoundError("User", str(user_id))
    return user


# Organizations

@router.get("/organizations", response_model=List[OrganizationWithUserCount])
async def list_organizations(
    principal: Principal = Depends(require_master_admin),
    db: Session = Depends(get_db)
):
    """All organizations, active or not, with their active user counts"""
    service = OrganizationService(db)
    rows = await service.list_organizations_with_counts()
    return [
        OrganizationWithUserCount.model_validate(row["organization"]).model_copy(
            update={"user_count": row["user_count"]}
        )
        for row in rows
    ]


@router.post("/organizations", response_model=OrganizationResponse, status_code=201)
async def create_organization(
    org_data: OrganizationCreate,
    principal: Principal = Depends(require_master_admin),
    db: Session = Depends(get_db)
):
    service = OrganizationService(db)
    return await service.create_organization(org_data, principal.user_id)


@router.get("/organizations/{org_id}", response_model=OrganizationDetails)
async def get_organization_details(
    org_id: UUID,
    principal: Principal = Depends(require_master_admin),
    db: Session = Depends(get_db)
):
    service = OrganizationService(db)
    organization, users = await service.get_details(org_id)
    return OrganizationDetails(organization=organization, users=users)


@router.put("/organizations/{org_id}/subscription", response_model=OrganizationResponse)
async def update_subscription(
    org_id: UUID,
    data: SubscriptionUpdate,
    principal: Principal = Depends(require_master_admin),
    db: Session = Depends(get_db)
):
    service = OrganizationService(db)
    return await service.update_subscription(org_id, data, principal.actor)


@router.put("/organizations/{org_id}/features", response_model=OrganizationResponse)
async def update_features(
    org_id: UUID,
    data: FeaturesUpdate,
    principal: Principal = Depends(require_master_admin),
    db: Session = Depends(get_db)
):
    service = OrganizationService(db)
    return await service.update_features(org_id, data, principal.actor)


@router.put("/organizations/{org_id}/status", response_model=OrganizationResponse)
async def update_status(
    org_id: UUID,
    data: StatusUpdate,
    principal: Principal = Depends(require_master_admin),
    db: Session = Depends(get_db)
):
    """Activate or deactivate; deactivation also revokes the API keys"""
    service = OrganizationService(db)
    return await service.update_status(org_id, data.is_active, principal.user_id)


@router.get("/organizations/{org_id}/stats", response_model=OrganizationStats)
async def get_organization_stats(
    org_id: UUID,
    principal: Principal = Depends(require_master_admin),
    db: Session = Depends(get_db)
):
    service = OrganizationService(db)
    return await service.get_stats(TenantContext(principal=principal), org_id)


# Organization users

@router.get("/organizations/{org_id}/users", response_model=List[UserResponse])
async def list_organization_users(
    org_id: UUID,
    principal: Principal = Depends(require_master_admin),
    db: Session = Depends(get_db)
):
    service = UserService(db)
    users, _ = await service.list_organization_users(TenantContext(principal=principal), org_id, limit=1000)
    return users


@router.post("/organizations/{org_id}/users", response_model=UserResponse, status_code=201)
async def create_organization_user(
    org_id: UUID,
    user_data: UserCreate,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(require_master_admin),
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service)
):
    """Create a user and email them an invitation"""
    service = UserService(db)
    user = await service.create_user(user_data, org_id, principal.actor)
    background_tasks.add_task(
        email_service.send_invitation_email,
        user.email,
        user.organization.name if user.organization else "",
        user_data.password
    )
    return user


@router.get("/organizations/{org_id}/users/{user_id}", response_model=UserResponse)
async def get_organization_user(
    org_id: UUID,
    user_id: UUID,
    principal: Principal = Depends(require_master_admin),
    db: Session = Depends(get_db)
):
    service = UserService(db)
    return _organization_user(service, org_id, user_id)


@router.put("/organizations/{org_id}/users/{user_id}", response_model=UserResponse)
async def update_organization_user(
    org_id: UUID,
    user_id: UUID,
    user_data: UserUpdate,
    principal: Principal = Depends(require_master_admin),
    db: Session = Depends(get_db)
):
    service = UserService(db)
    _organization_user(service, org_id, user_id)
    return await service.update_user(TenantContext(principal=principal), user_id, user_data)


@router.post("/organizations/{org_id}/users/{user_id}/reset-password", response_model=MessageResponse)
async def reset_organization_user_password(
    org_id: UUID,
    user_id: UUID,
    data: PasswordReset,
    principal: Principal = Depends(require_master_admin),
    db: Session = Depends(get_db)
):
    service = UserService(db)
    user = _organization_user(service, org_id, user_id)
    await service.set_password(user, data.new_password, principal.actor)
    return MessageResponse(message="Password reset successfully")


# Master admins

@router.get("/admins", response_model=List[UserResponse])
async def list_master_admins(
    principal: Principal = Depends(require_master_admin),
    db: Session = Depends(get_db)
):
    service = UserService(db)
    return await service.list_master_admins()


@router.post("/admins", response_model=UserResponse, status_code=201)
async def create_master_admin(
    data: MasterAdminCreate,
    principal: Principal = Depends(require_master_admin),
    db: Session = Depends(get_db)
):
    service = UserService(db)
    return await service.create_master_admin(data, principal.actor)


@router.put("/admins/{user_id}", response_model=UserResponse)
async def update_master_admin(
    user_id: UUID,
    data: UserUpdate,
    principal: Principal = Depends(require_master_admin),
    db: Session = Depends(get_db)
):
    service = UserService(db)
    return await service.update_master_admin(user_id, data, principal.actor)


@router.post("/admins/{user_id}/reset-password", response_model=MessageResponse)
async def reset_master_admin_password(
    user_id: UUID,
    data: PasswordReset,
    principal: Principal = Depends(require_master_admin),
    db: Session = Depends(get_db)
):
    service = UserService(db)
    user = service.get_master_admin(user_id)
    await service.set_password(user, data.new_password, principal.actor)
    return MessageResponse(message="Password reset successfully")


@router.delete("/admins/{user_id}", response_model=UserResponse)
async def deactivate_master_admin(
    user_id: UUID,
    principal: Principal = Depends(require_master_admin),
    db: Session = Depends(get_db)
):
    """Deactivate another master admin"""
    service = UserService(db)
    return await service.deactivate_master_admin(user_id, principal.user_id)
