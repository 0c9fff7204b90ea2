"""
User management service
"""
from typing import Optional, List, Tuple, Any
from sqlalchemy.orm import Session
from uuid import UUID
import logging

from .base_service import BaseService
from ..repositories.user_repository import UserRepository
from ..repositories.tenant_repository import OrganizationRepository
from ..models.user import User
from ..core.rbac import TenantContext, RBACManager, UserRole
from ..core.security import hash_password
from ..core.exceptions import (
    NotFoundError, ConflictError, AuthorizationError, ValidationError, QuotaExceededError
)
from ..schemas.user import UserCreate, UserUpdate, MasterAdminCreate

logger = logging.getLogger(__name__)


class UserService(BaseService[UserRepository]):
    """Service for user operations"""

    def __init__(self, db: Session):
        super().__init__(UserRepository, db)
        self.org_repo = OrganizationRepository(db)

    def _check_user_limit(self, organization) -> None:
        limit = organization.max_users or 0
        if not limit:
            return
        current = self.org_repo.user_count(organization.id)
        if current >= limit:
            raise QuotaExceededError("user", limit, current)

    async def create_user(
        self,
        user_data: UserCreate,
        organization_id: Optional[UUID],
        created_by: Optional[str] = None
    ) -> User:
        """Create a user in an organization (never a master admin)"""
        if self.repository.get_by_email(user_data.email):
            raise ConflictError("Email already in use", {"email": user_data.email})

        organization = None
        if organization_id is not None:
            organization = self.org_repo.get(organization_id)
            if not organization:
                raise NotFoundError("Organization", str(organization_id))
            if not organization.is_active:
                raise ValidationError("Organization is inactive", field="organization_id")
            self._check_user_limit(organization)

        user = self.repository.create(obj_in={
            "email": user_data.email,
            "password_hash": hash_password(user_data.password),
            "first_name": user_data.first_name,
            "last_name": user_data.last_name,
            "organization_id": organization_id,
            "role": user_data.role.value,
            "is_master_admin": False,
            "is_active": True
        })

        if organization is not None:
            self.org_repo.increment_usage(organization, "total_users")

        await self.log_action("create_user", "user", str(user.id), created_by)
        return user

    async def list_users(
        self,
        context: TenantContext,
        *,
        role: Optional[str] = None,
        is_active: Optional[bool] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[User], int]:
        """Users visible to the caller"""
        return self.repository.list_users(
            context.scope,
            role=role,
            is_active=is_active,
            skip=skip,
            limit=limit
        )

    async def list_organization_users(
        self,
        context: TenantContext,
        organization_id: UUID,
        *,
        skip: int = 0,
        limit: int = 100
    ) -> Tuple[List[User], int]:
        self.ensure_access(context, organization_id)
        if not self.org_repo.exists(organization_id):
            raise NotFoundError("Organization", str(organization_id))
        return self.repository.list_users(organization_id, skip=skip, limit=limit)

    async def get_user(self, context: TenantContext, user_id: UUID) -> User:
        """Get a user the caller is allowed to see"""
        user = self.repository.get_or_404(user_id)
        if not RBACManager.can_view_user(context.principal, user, context.is_master_org):
            raise AuthorizationError("Not authorized to view this user")
        return user

    async def update_user(self, context: TenantContext, user_id: UUID, user_data: UserUpdate) -> User:
        user = await self.get_user(context, user_id)
        principal = context.principal

        update_data = user_data.model_dump(exclude_unset=True)
        is_admin = RBACManager.is_org_admin(principal)
        if not is_admin and (principal.user_id is None or str(principal.user_id) != str(user.id)):
            raise AuthorizationError("Not authorized to update this user")
        if not is_admin and ({"role", "is_active"} & set(update_data)):
            raise AuthorizationError("Only administrators can change role or status")

        if update_data.get("email") and update_data["email"] != user.email:
            if self.repository.get_by_email(update_data["email"]):
                raise ConflictError("Email already in use", {"email": update_data["email"]})

        if isinstance(update_data.get("role"), UserRole):
            update_data["role"] = update_data["role"].value

        user = self.repository.update(db_obj=user, obj_in=update_data)
        await self.log_action("update_user", "user", str(user_id), principal.actor, update_data)
        return user

    async def delete_user(self, context: TenantContext, user_id: UUID) -> None:
        """Soft delete by deactivating"""
        principal = context.principal
        if principal.user_id is not None and str(principal.user_id) == str(user_id):
            raise ValidationError("You cannot delete your own account")

        user = self.repository.get_or_404(user_id, context.scope)
        self.repository.update(db_obj=user, obj_in={"is_active": False})
        await self.log_action("delete_user", "user", str(user_id), principal.actor)

    async def set_password(self, user: User, new_password: str, actor: Optional[str]) -> None:
        self.repository.update(
            db_obj=user,
            obj_in={
                "password_hash": hash_password(new_password),
                "password_reset_token": None,
                "password_reset_expires": None
            },
            skip_none=False
        )
        await self.log_action("set_password", "user", str(user.id), actor)

    # Master admins

    async def list_master_admins(self) -> List[User]:
        return self.repository.get_master_admins()

    async def create_master_admin(self, data: MasterAdminCreate, created_by: Optional[str]) -> User:
        if self.repository.get_by_email(data.email):
            raise ConflictError("Email already in use", {"email": data.email})

        user = self.repository.create(obj_in={
            "email": data.email,
            "password_hash": hash_password(data.password),
            "first_name": data.first_name,
            "last_name": data.last_name,
            "organization_id": None,
            "role": UserRole.ADMIN.value,
            "is_master_admin": True,
            "is_active": True
        })
        await self.log_action("create_master_admin", "user", str(user.id), created_by)
        return user

    def get_master_admin(self, user_id: UUID) -> User:
        user = self.repository.get(user_id)
        if not user or not user.is_master_admin:
            raise NotFoundError("Master admin", str(user_id))
        return user

    async def update_master_admin(self, user_id: UUID, data: UserUpdate, actor: Optional[str]) -> User:
        user = self.get_master_admin(user_id)
        update_data = data.model_dump(exclude_unset=True, exclude={"role"})
        if update_data.get("email") and update_data["email"] != user.email:
            if self.repository.get_by_email(update_data["email"]):
                raise ConflictError("Email already in use", {"email": update_data["email"]})
        user = self.repository.update(db_obj=user, obj_in=update_data)
        await self.log_action("update_master_admin", "user", str(user_id), actor, update_data)
        return user

    async def deactivate_master_admin(self, user_id: UUID, actor_id: Optional[Any]) -> User:
        if actor_id is not None and str(actor_id) == str(user_id):
            raise ValidationError("You cannot deactivate your own account")
        user = self.get_master_admin(user_id)
        user = self.repository.update(db_obj=user, obj_in={"is_active": False})
        await self.log_action("deactivate_master_admin", "user", str(user_id), str(actor_id))
        return user
