"""
Common service plumbing: repository wiring, organization checks, audit logging
"""
from typing import TypeVar, Generic, Type, Optional, Dict, Any
from sqlalchemy.orm import Session
import logging

from ..repositories.base_repository import BaseRepository
from ..core.rbac import TenantContext
from ..core.exceptions import AuthorizationError

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("nectardesk_api.audit")

RepositoryType = TypeVar("RepositoryType", bound=BaseRepository)


class BaseService(Generic[RepositoryType]):

    def __init__(self, repository: Type[RepositoryType], db: Session):
        self.db = db
        self.repository = repository(db)

    def ensure_access(self, context: TenantContext, organization_id: Any) -> None:
        """Raise AuthorizationError unless the caller may act on organization_id"""
        if context.can_access(organization_id):
            return
        logger.warning(
            f"Denied {context.principal.actor} access to organization {organization_id}"
        )
        raise AuthorizationError("Access denied to this organization's data")

    async def log_action(
        self,
        action: str,
        resource_type: str,
        resource_id: str,
        actor: Optional[str],
        details: Optional[Dict[str, Any]] = None
    ):
        # Only field names are recorded, never values (passwords, keys)
        suffix = f" fields={sorted(details)}" if details else ""
        audit_logger.info(f"{action} {resource_type}:{resource_id} by {actor or 'system'}{suffix}")
