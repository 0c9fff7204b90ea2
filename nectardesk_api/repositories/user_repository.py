"""
User and agent repositories
"""
from typing import Optional, List, Tuple
from sqlalchemy.orm import Session
from sqlalchemy import or_, func
from uuid import UUID

from .base_repository import BaseRepository
from ..models.user import User
from ..models.agent import Agent


class UserRepository(BaseRepository[User]):
    """Repository for user operations"""

    def __init__(self, db: Session):
        super().__init__(User, db)

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def get_by_reset_token(self, token_hash: str) -> Optional[User]:
        return self.db.query(User).filter(User.password_reset_token == token_hash).first()

    def list_users(
        self,
        organization_id: Optional[UUID] = None,
        *,
        role: Optional[str] = None,
        is_active: Optional[bool] = None,
        skip: int = 0,
        limit: int = 100
    ) -> Tuple[List[User], int]:
        """Page of users plus the total matching count"""
        query = self.scoped(organization_id)
        if role:
            query = query.filter(User.role == role)
        if is_active is not None:
            query = query.filter(User.is_active.is_(is_active))

        total = query.count()
        users = query.order_by(User.last_name, User.first_name).offset(skip).limit(limit).all()
        return users, total

    def get_master_admins(self) -> List[User]:
        return self.db.query(User).filter(User.is_master_admin.is_(True)).order_by(User.email).all()


class AgentRepository(BaseRepository[Agent]):
    """Repository for agent operations"""

    def __init__(self, db: Session):
        super().__init__(Agent, db)

    def get_by_external_id(self, organization_id: UUID, external_id: str) -> Optional[Agent]:
        return self.db.query(Agent).filter(
            Agent.organization_id == organization_id,
            Agent.external_id == external_id
        ).first()

    def get_by_email(self, organization_id: UUID, email: str) -> Optional[Agent]:
        return self.db.query(Agent).filter(
            Agent.organization_id == organization_id,
            Agent.email == email.strip().lower()
        ).first()

    def search(
        self,
        organization_id: Optional[UUID] = None,
        *,
        status: Optional[str] = None,
        search: Optional[str] = None,
        sort_by: str = "last_name",
        sort_desc: bool = False,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Agent], int]:
        """Filtered, sorted page of agents plus the total matching count"""
        query = self.scoped(organization_id)

        if status:
            query = query.filter(Agent.status == status)
        if search:
            term = f"%{search.strip().lower()}%"
            query = query.filter(or_(
                func.lower(Agent.first_name).like(term),
                func.lower(Agent.last_name).like(term),
                func.lower(Agent.email).like(term),
                func.lower(Agent.external_id).like(term),
            ))

        total = query.count()

        order_column = getattr(Agent, sort_by, Agent.last_name)
        query = query.order_by(order_column.desc() if sort_desc else order_column, Agent.id)
        return query.offset(skip).limit(limit).all(), total

    def get_active_by_organization(self, organization_id: UUID) -> List[Agent]:
        return self.db.query(Agent).filter(
            Agent.organization_id == organization_id,
            Agent.status == "active"
        ).order_by(Agent.last_name, Agent.first_name).all()

    def get_by_organization(self, organization_id: UUID, status: Optional[str] = None) -> List[Agent]:
        query = self.db.query(Agent).filter(Agent.organization_id == organization_id)
        if status:
            query = query.filter(Agent.status == status)
        return query.all()
