"""
Tenant isolation and role-based access policy
"""
from dataclasses import dataclass
from typing import Optional, Any
from uuid import UUID
from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, from a bearer token or an API key"""
    user_id: Optional[UUID]
    organization_id: Optional[UUID]
    role: str = UserRole.USER.value
    is_master_admin: bool = False
    email: Optional[str] = None
    api_key_id: Optional[UUID] = None

    @property
    def via_api_key(self) -> bool:
        return self.api_key_id is not None

    @property
    def actor(self) -> str:
        """Identifier used in logs"""
        if self.user_id:
            return str(self.user_id)
        return f"api_key:{self.api_key_id}"


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    bypass: bool = False
    scope_organization_id: Optional[UUID] = None
    reason: Optional[str] = None


def evaluate_access(
    principal: Principal,
    resource_organization_id: Optional[Any] = None,
    is_master_org: bool = False
) -> AccessDecision:
    """
    Decide whether a principal may touch data of a given organization.

    Master admins and members of the master organization bypass scoping and
    see every tenant. Everyone else is confined to their own organization:
    the returned scope_organization_id must be applied as a filter to every
    query made on their behalf.
    """
    if principal.is_master_admin or is_master_org:
        return AccessDecision(allowed=True, bypass=True)

    if principal.organization_id is None:
        return AccessDecision(allowed=False, reason="Organization context not found")

    if resource_organization_id is not None and str(resource_organization_id) != str(principal.organization_id):
        return AccessDecision(
            allowed=False,
            scope_organization_id=principal.organization_id,
            reason="Resource belongs to another organization"
        )

    return AccessDecision(allowed=True, scope_organization_id=principal.organization_id)


class RBACManager:
    """Role checks layered on top of tenant scoping"""

    @staticmethod
    def is_org_admin(principal: Principal) -> bool:
        return principal.is_master_admin or principal.role == UserRole.ADMIN.value

    @staticmethod
    def can_view_user(principal: Principal, target_user: Any, is_master_org: bool = False) -> bool:
        """Self, an admin of the same organization, or a cross-tenant principal"""
        if principal.user_id and str(principal.user_id) == str(target_user.id):
            return True
        decision = evaluate_access(principal, target_user.organization_id, is_master_org)
        if not decision.allowed:
            return False
        if decision.bypass:
            return True
        # Org-less users (master admins) are out of every tenant's reach
        if target_user.organization_id is None:
            return False
        return principal.role == UserRole.ADMIN.value

    @staticmethod
    def can_modify_call_type(principal: Principal, call_type: Any, is_master_org: bool = False) -> bool:
        """Global types belong to master admins, the rest to their organization's admins"""
        if call_type.is_global:
            return principal.is_master_admin
        if not RBACManager.is_org_admin(principal):
            return False
        return evaluate_access(principal, call_type.organization_id, is_master_org).allowed


@dataclass(frozen=True)
class TenantContext:
    """Per-request principal plus whether its organization is the master one"""
    principal: Principal
    is_master_org: bool = False

    @property
    def decision(self) -> AccessDecision:
        return evaluate_access(self.principal, None, self.is_master_org)

    @property
    def bypass(self) -> bool:
        return self.decision.bypass

    @property
    def scope(self) -> Optional[UUID]:
        """Organization filter for queries; None for cross-tenant callers"""
        return self.decision.scope_organization_id

    @property
    def organization_id(self) -> Optional[UUID]:
        return self.principal.organization_id

    def can_access(self, resource_organization_id: Optional[Any]) -> bool:
        return evaluate_access(self.principal, resource_organization_id, self.is_master_org).allowed

    def target_organization(self, requested: Optional[UUID] = None) -> Optional[UUID]:
        """Organization new records go to; only cross-tenant callers may pick one"""
        if requested is not None and self.bypass:
            return requested
        return self.principal.organization_id
