"""
API dependencies
"""
from typing import Optional
from uuid import UUID
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from ..core.database import get_db
from ..core.rbac import Principal, TenantContext, RBACManager
from ..core.exceptions import ServiceUnavailableError, AuthenticationError, AuthorizationError
from ..repositories.tenant_repository import OrganizationRepository
from ..repositories.user_repository import UserRepository
from ..services.auth_service import AuthService
from ..services.email_service import EmailService
from ..services.scheduler_service import JobScheduler
from ..middleware.auth_middleware import API_KEY_HEADER

# Re-export database dependency
__all__ = [
    "get_db",
    "get_current_principal",
    "get_tenant_context",
    "require_org_admin",
    "require_master_admin",
    "get_scheduler",
    "get_email_service",
]


def _parse_uuid(value: Optional[str]) -> Optional[UUID]:
    if not value:
        return None
    try:
        return UUID(str(value))
    except ValueError:
        raise AuthenticationError("Invalid token payload")


async def get_current_principal(request: Request, db: Session = Depends(get_db)) -> Principal:
    """The caller, from the decoded bearer token or the x-api-key header"""
    payload = getattr(request.state, "token_payload", None)
    if payload:
        user_id = _parse_uuid(payload.get("sub"))
        user = UserRepository(db).get(user_id)
        if not user or not user.is_active:
            raise AuthenticationError("User not found or inactive")
        return Principal(
            user_id=user.id,
            organization_id=user.organization_id,
            role=user.role,
            is_master_admin=bool(user.is_master_admin),
            email=user.email
        )

    raw_key = request.headers.get(API_KEY_HEADER)
    if raw_key:
        return AuthService(db).authenticate_api_key(raw_key)

    raise AuthenticationError("Authentication required")


async def get_tenant_context(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
) -> TenantContext:
    """Principal plus the access decision every query is filtered by"""
    context = TenantContext(
        principal=principal,
        is_master_org=OrganizationRepository(db).is_master(principal.organization_id)
    )
    decision = context.decision
    if not decision.allowed:
        raise AuthorizationError(decision.reason or "Access denied")
    return context


async def require_org_admin(context: TenantContext = Depends(get_tenant_context)) -> TenantContext:
    """Require the admin role (or master admin)"""
    if not RBACManager.is_org_admin(context.principal):
        raise AuthorizationError("Organization admin access required")
    return context


async def require_master_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    """Require a master admin"""
    if not principal.is_master_admin:
        raise AuthorizationError("Master admin access required")
    return principal


def get_scheduler(request: Request) -> JobScheduler:
    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        raise ServiceUnavailableError("Job scheduler is not running", error_code="SCHEDULER_UNAVAILABLE")
    return scheduler


def get_email_service() -> EmailService:
    return EmailService()
