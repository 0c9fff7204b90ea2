"""
Organization and API key repositories
"""
from typing import Optional, List
from datetime import datetime
from sqlalchemy.orm import Session
from sqlalchemy import func
from uuid import UUID

from .base_repository import BaseRepository
from ..models.organization import Organization, ApiKey
from ..models.user import User


class OrganizationRepository(BaseRepository[Organization]):
    """Repository for organization operations"""

    def __init__(self, db: Session):
        super().__init__(Organization, db)

    def scoped(self, organization_id: Optional[UUID] = None):
        query = self.db.query(Organization)
        if organization_id is not None:
            query = query.filter(Organization.id == organization_id)
        return query

    def get_by_name(self, name: str) -> Optional[Organization]:
        return self.db.query(Organization).filter(func.lower(Organization.name) == name.strip().lower()).first()

    def get_by_code(self, code: str) -> Optional[Organization]:
        return self.db.query(Organization).filter(Organization.code == code.upper()).first()

    def get_active(self) -> List[Organization]:
        """All active organizations, by name"""
        return self.db.query(Organization).filter(
            Organization.is_active.is_(True)
        ).order_by(Organization.name).all()

    def list_all(self, include_inactive: bool = True) -> List[Organization]:
        query = self.db.query(Organization)
        if not include_inactive:
            query = query.filter(Organization.is_active.is_(True))
        return query.order_by(Organization.name).all()

    def is_master(self, organization_id: Optional[UUID]) -> bool:
        """Whether the organization is flagged as the master organization"""
        if organization_id is None:
            return False
        return self.db.query(Organization.id).filter(
            Organization.id == organization_id,
            Organization.is_master.is_(True)
        ).first() is not None

    def user_count(self, organization_id: UUID, active_only: bool = True) -> int:
        query = self.db.query(func.count(User.id)).filter(User.organization_id == organization_id)
        if active_only:
            query = query.filter(User.is_active.is_(True))
        return query.scalar() or 0

    def increment_usage(self, organization: Organization, field: str, amount: int = 1) -> Organization:
        """Read-modify-write increment of a usage counter"""
        setattr(organization, field, (getattr(organization, field) or 0) + amount)
        organization.last_active = datetime.utcnow()
        self.db.add(organization)
        self.db.commit()
        return organization


class ApiKeyRepository(BaseRepository[ApiKey]):
    """Repository for API key operations"""

    def __init__(self, db: Session):
        super().__init__(ApiKey, db)

    def get_by_prefix(self, prefix: str) -> Optional[ApiKey]:
        return self.db.query(ApiKey).filter(ApiKey.prefix == prefix).first()

    def get_by_organization(self, organization_id: UUID, active_only: bool = False) -> List[ApiKey]:
        query = self.db.query(ApiKey).filter(ApiKey.organization_id == organization_id)
        if active_only:
            query = query.filter(ApiKey.is_active.is_(True))
        return query.order_by(ApiKey.created_at.desc()).all()

    def count_active(self, organization_id: UUID) -> int:
        return self.db.query(func.count(ApiKey.id)).filter(
            ApiKey.organization_id == organization_id,
            ApiKey.is_active.is_(True)
        ).scalar() or 0

    def deactivate_for_organization(self, organization_id: UUID, deactivated_by: Optional[UUID]) -> int:
        """Deactivate every active key of an organization"""
        keys = self.get_by_organization(organization_id, active_only=True)
        now = datetime.utcnow()
        for key in keys:
            key.is_active = False
            key.deactivated_at = now
            key.deactivated_by = deactivated_by
        self.db.commit()
        return len(keys)

    def touch(self, api_key: ApiKey) -> None:
        api_key.last_used = datetime.utcnow()
        self.db.add(api_key)
        self.db.commit()
