"""
Authentication service
"""
from typing import Optional, Dict, Any
from sqlalchemy.orm import Session
from datetime import datetime, timedelta
import logging

from .base_service import BaseService
from ..repositories.user_repository import UserRepository
from ..repositories.tenant_repository import OrganizationRepository, ApiKeyRepository
from ..models.user import User
from ..core.rbac import Principal
from ..core.security import (
    verify_password, hash_password, create_access_token,
    hash_secret, secrets_match, split_api_key, generate_reset_token
)
from ..core.exceptions import AuthenticationError, ValidationError, NotFoundError
from ..core.config import settings
from ..utils.period_utils import to_naive_utc

logger = logging.getLogger(__name__)


class AuthService(BaseService[UserRepository]):
    """Service for authentication operations"""

    def __init__(self, db: Session):
        super().__init__(UserRepository, db)
        self.org_repo = OrganizationRepository(db)
        self.api_key_repo = ApiKeyRepository(db)

    def issue_token(self, user: User) -> str:
        return create_access_token(
            user_id=str(user.id),
            email=user.email,
            organization_id=str(user.organization_id) if user.organization_id else None,
            role=user.role,
            is_master_admin=user.is_master_admin
        )

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """Check credentials and return a token with the user and organization"""
        user = self.repository.get_by_email(email)

        if not user or not verify_password(password, user.password_hash):
            logger.info(f"Failed login attempt for {email}")
            raise AuthenticationError("Invalid email or password")

        if not user.is_active:
            raise AuthenticationError("Account is inactive")

        user = self.repository.update(db_obj=user, obj_in={"last_login_at": datetime.utcnow()})
        organization = self.org_repo.get(user.organization_id) if user.organization_id else None

        await self.log_action("login", "user", str(user.id), str(user.id))

        return {
            "token": self.issue_token(user),
            "user": user,
            "organization": organization
        }

    async def get_me(self, principal: Principal) -> Dict[str, Any]:
        if principal.user_id is None:
            raise AuthenticationError("A user token is required")
        user = self.repository.get(principal.user_id)
        if not user:
            raise NotFoundError("User", str(principal.user_id))
        organization = self.org_repo.get(user.organization_id) if user.organization_id else None
        return {"user": user, "organization": organization}

    async def change_password(self, user_id, current_password: str, new_password: str) -> None:
        user = self.repository.get_or_404(user_id)
        if not verify_password(current_password, user.password_hash):
            raise AuthenticationError("Current password is incorrect")

        self.repository.update(db_obj=user, obj_in={"password_hash": hash_password(new_password)})
        await self.log_action("change_password", "user", str(user.id), str(user.id))

    async def request_password_reset(self, email: str) -> Optional[str]:
        """
        Store a reset token for the user and return the raw token.

        Returns None when no active user has that email; callers must answer
        the same way in both cases.
        """
        user = self.repository.get_by_email(email)
        if not user or not user.is_active:
            logger.info(f"Password reset requested for unknown or inactive email {email}")
            return None

        token = generate_reset_token()
        self.repository.update(
            db_obj=user,
            obj_in={
                "password_reset_token": hash_secret(token),
                "password_reset_expires": datetime.utcnow() + timedelta(
                    minutes=settings.password_reset_expiry_minutes
                )
            }
        )
        await self.log_action("request_password_reset", "user", str(user.id), str(user.id))
        return token

    async def reset_password(self, token: str, new_password: str) -> None:
        user = self.repository.get_by_reset_token(hash_secret(token))

        expires = to_naive_utc(user.password_reset_expires) if user else None
        if not user or not expires or expires < datetime.utcnow():
            raise ValidationError("Password reset token is invalid or has expired", field="token")

        self.repository.update(
            db_obj=user,
            obj_in={
                "password_hash": hash_password(new_password),
                "password_reset_token": None,
                "password_reset_expires": None
            },
            skip_none=False
        )
        await self.log_action("reset_password", "user", str(user.id), str(user.id))

    def authenticate_api_key(self, raw_key: str) -> Principal:
        """Resolve an x-api-key header to an organization-scoped principal"""
        prefix, secret = split_api_key(raw_key)
        api_key = self.api_key_repo.get_by_prefix(prefix)

        if not api_key or not api_key.is_active or not secrets_match(secret, api_key.secret_hash):
            raise AuthenticationError("Invalid or inactive API key")

        organization = self.org_repo.get(api_key.organization_id)
        if not organization or not organization.is_active:
            raise AuthenticationError("Organization is inactive")

        self.api_key_repo.touch(api_key)
        self.org_repo.increment_usage(organization, "api_calls")

        return Principal(
            user_id=None,
            organization_id=api_key.organization_id,
            role="user",
            is_master_admin=False,
            api_key_id=api_key.id
        )
