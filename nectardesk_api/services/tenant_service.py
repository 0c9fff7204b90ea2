"""
Organization and API key management service
"""
from typing import Optional, List, Dict, Any, Tuple
from sqlalchemy.orm import Session
from datetime import datetime
from uuid import UUID
import logging
import re

from .base_service import BaseService
from ..repositories.tenant_repository import OrganizationRepository, ApiKeyRepository
from ..repositories.user_repository import UserRepository, AgentRepository
from ..repositories.transcript_repository import TranscriptRepository
from ..models.organization import Organization, ApiKey
from ..models.user import User
from ..core.rbac import TenantContext, RBACManager
from ..core.security import generate_api_key, hash_secret
from ..core.exceptions import NotFoundError, ConflictError, AuthorizationError, ValidationError
from ..schemas.organization import (
    OrganizationCreate, OrganizationUpdate, SubscriptionUpdate, FeaturesUpdate, ApiKeyCreate
)

logger = logging.getLogger(__name__)


class OrganizationService(BaseService[OrganizationRepository]):
    """Service for organization operations"""

    def __init__(self, db: Session):
        super().__init__(OrganizationRepository, db)
        self.api_key_repo = ApiKeyRepository(db)
        self.user_repo = UserRepository(db)
        self.agent_repo = AgentRepository(db)
        self.transcript_repo = TranscriptRepository(db)

    def _unique_code(self, requested: Optional[str], name: str) -> str:
        base = re.sub(r"[^A-Z0-9]", "", (requested or name).upper())[:12] or "ORG"
        if requested:
            if self.repository.get_by_code(base):
                raise ConflictError("Organization code already in use", {"code": base})
            return base

        code, suffix = base, 1
        while self.repository.get_by_code(code):
            suffix += 1
            code = f"{base}{suffix}"
        return code

    def _check_name_available(self, name: str, exclude_id: Optional[UUID] = None) -> None:
        existing = self.repository.get_by_name(name)
        if existing and existing.id != exclude_id:
            raise ConflictError("Organization with this name already exists", {"name": name})

    async def list_active_organizations(self) -> List[Organization]:
        return self.repository.get_active()

    async def create_organization(self, data: OrganizationCreate, created_by: Optional[UUID]) -> Organization:
        """Create an organization with its plan features"""
        self._check_name_available(data.name)

        features = data.features.model_dump() if data.features else {}
        organization = self.repository.create(obj_in={
            "name": data.name.strip(),
            "code": self._unique_code(data.code, data.name),
            "description": data.description,
            "contact_email": data.contact_email.strip().lower(),
            "subscription_tier": data.subscription_tier.value,
            "subscription_status": "active",
            "subscription_start": datetime.utcnow(),
            "settings": data.settings,
            "created_by": created_by,
            **features
        })

        await self.log_action("create_organization", "organization", str(organization.id), str(created_by))
        return organization

    async def get_organization(self, context: TenantContext, organization_id: UUID) -> Organization:
        self.ensure_access(context, organization_id)
        return self.repository.get_or_404(organization_id)

    async def update_organization(
        self,
        context: TenantContext,
        organization_id: UUID,
        data: OrganizationUpdate
    ) -> Organization:
        if not RBACManager.is_org_admin(context.principal):
            raise AuthorizationError("Organization admin access required")
        organization = await self.get_organization(context, organization_id)

        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("name"):
            self._check_name_available(update_data["name"], exclude_id=organization.id)

        organization = self.repository.update(db_obj=organization, obj_in=update_data)
        await self.log_action(
            "update_organization", "organization", str(organization_id), context.principal.actor, update_data
        )
        return organization

    async def deactivate_organization(self, organization_id: UUID, actor_id: Optional[UUID]) -> int:
        """Deactivate an organization and all of its API keys"""
        organization = self.repository.get_or_404(organization_id)
        if organization.is_master:
            raise ValidationError("The master organization cannot be deactivated")

        self.repository.update(db_obj=organization, obj_in={"is_active": False})
        revoked = self.api_key_repo.deactivate_for_organization(organization_id, actor_id)

        await self.log_action("deactivate_organization", "organization", str(organization_id), str(actor_id))
        return revoked

    # API keys

    async def create_api_key(
        self,
        context: TenantContext,
        organization_id: UUID,
        data: ApiKeyCreate
    ) -> Tuple[ApiKey, str]:
        """Create a key; the returned full key is not stored and cannot be shown again"""
        if not RBACManager.is_org_admin(context.principal):
            raise AuthorizationError("Organization admin access required")
        organization = await self.get_organization(context, organization_id)
        if not organization.is_active:
            raise ValidationError("Organization is inactive")

        prefix, secret = generate_api_key()
        api_key = self.api_key_repo.create(obj_in={
            "organization_id": organization.id,
            "name": data.name,
            "prefix": prefix,
            "secret_hash": hash_secret(secret),
            "key_hint": secret[-4:],
            "permissions": data.permissions,
            "created_by": context.principal.user_id,
            "is_active": True
        })

        await self.log_action("create_api_key", "api_key", str(api_key.id), context.principal.actor)
        return api_key, f"{prefix}_{secret}"

    async def list_api_keys(self, context: TenantContext, organization_id: UUID) -> List[ApiKey]:
        await self.get_organization(context, organization_id)
        return self.api_key_repo.get_by_organization(organization_id)

    async def revoke_api_key(self, context: TenantContext, organization_id: UUID, key_id: UUID) -> ApiKey:
        if not RBACManager.is_org_admin(context.principal):
            raise AuthorizationError("Organization admin access required")
        self.ensure_access(context, organization_id)

        api_key = self.api_key_repo.get(key_id, organization_id)
        if not api_key:
            raise NotFoundError("API key", str(key_id))

        api_key = self.api_key_repo.update(db_obj=api_key, obj_in={
            "is_active": False,
            "deactivated_at": datetime.utcnow(),
            "deactivated_by": context.principal.user_id
        })
        await self.log_action("revoke_api_key", "api_key", str(key_id), context.principal.actor)
        return api_key

    async def get_stats(self, context: TenantContext, organization_id: UUID) -> Dict[str, Any]:
        organization = await self.get_organization(context, organization_id)
        return {
            "organization_id": organization.id,
            "active_api_key_count": self.api_key_repo.count_active(organization.id),
            "transcript_count": self.transcript_repo.count_for_organization(organization.id),
            "user_count": self.repository.user_count(organization.id),
            "agent_count": self.agent_repo.count(filters={"organization_id": organization.id}),
            "total_transcripts": organization.total_transcripts or 0,
            "api_calls": organization.api_calls or 0,
            "timestamp": datetime.utcnow()
        }

    # Master admin management

    async def list_organizations_with_counts(self) -> List[Dict[str, Any]]:
        result = []
        for organization in self.repository.list_all():
            result.append({"organization": organization, "user_count": self.repository.user_count(organization.id)})
        return result

    async def get_details(self, organization_id: UUID) -> Tuple[Organization, List[User]]:
        organization = self.repository.get_or_404(organization_id)
        users, _ = self.user_repo.list_users(organization_id, limit=1000)
        return organization, users

    async def update_subscription(self, organization_id: UUID, data: SubscriptionUpdate, actor: str) -> Organization:
        organization = self.repository.get_or_404(organization_id)
        update_data = {
            key: value.value if hasattr(value, "value") else value
            for key, value in data.model_dump(exclude_unset=True).items()
        }
        organization = self.repository.update(db_obj=organization, obj_in=update_data)
        await self.log_action("update_subscription", "organization", str(organization_id), actor, update_data)
        return organization

    async def update_features(self, organization_id: UUID, data: FeaturesUpdate, actor: str) -> Organization:
        organization = self.repository.get_or_404(organization_id)
        update_data = data.model_dump(exclude_unset=True)
        organization = self.repository.update(db_obj=organization, obj_in=update_data)
        await self.log_action("update_features", "organization", str(organization_id), actor, update_data)
        return organization

    async def update_status(self, organization_id: UUID, is_active: bool, actor_id: Optional[UUID]) -> Organization:
        if not is_active:
            await self.deactivate_organization(organization_id, actor_id)
            return self.repository.get_or_404(organization_id)

        organization = self.repository.get_or_404(organization_id)
        organization = self.repository.update(db_obj=organization, obj_in={"is_active": True})
        await self.log_action("activate_organization", "organization", str(organization_id), str(actor_id))
        return organization
