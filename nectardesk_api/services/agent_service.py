"""
Agent management service
"""
from typing import Optional, List, Tuple
from sqlalchemy.orm import Session
from uuid import UUID
import logging

from .base_service import BaseService
from ..repositories.user_repository import AgentRepository
from ..repositories.tenant_repository import OrganizationRepository
from ..models.agent import Agent
from ..core.rbac import TenantContext
from ..core.exceptions import ConflictError, ValidationError, NotFoundError
from ..schemas.agent import AgentCreate, AgentUpdate

logger = logging.getLogger(__name__)


class AgentService(BaseService[AgentRepository]):
    """Service for agent operations"""

    def __init__(self, db: Session):
        super().__init__(AgentRepository, db)
        self.org_repo = OrganizationRepository(db)

    def _check_unique(
        self,
        organization_id: UUID,
        external_id: Optional[str],
        email: Optional[str],
        exclude_id: Optional[UUID] = None
    ) -> None:
        if external_id:
            existing = self.repository.get_by_external_id(organization_id, external_id)
            if existing and existing.id != exclude_id:
                raise ConflictError("Agent with this external ID already exists", {"external_id": external_id})
        if email:
            existing = self.repository.get_by_email(organization_id, email)
            if existing and existing.id != exclude_id:
                raise ConflictError("Agent with this email already exists", {"email": email})

    async def list_agents(
        self,
        context: TenantContext,
        *,
        status: Optional[str] = None,
        search: Optional[str] = None,
        sort_by: str = "last_name",
        sort_desc: bool = False,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Agent], int]:
        """Agents visible to the caller"""
        return self.repository.search(
            context.scope,
            status=status,
            search=search,
            sort_by=sort_by,
            sort_desc=sort_desc,
            skip=skip,
            limit=limit
        )

    async def get_agent(self, context: TenantContext, agent_id: UUID) -> Agent:
        return self.repository.get_or_404(agent_id, context.scope)

    async def create_agent(self, context: TenantContext, agent_data: AgentCreate) -> Agent:
        organization_id = context.target_organization(agent_data.organization_id)
        if organization_id is None:
            raise ValidationError("organization_id is required", field="organization_id")
        if not self.org_repo.exists(organization_id):
            raise NotFoundError("Organization", str(organization_id))

        self._check_unique(organization_id, agent_data.external_id, agent_data.email)

        data = agent_data.model_dump(exclude={"organization_id", "metadata"})
        data["status"] = agent_data.status.value
        data["organization_id"] = organization_id
        data["agent_metadata"] = agent_data.metadata
        data["historical"] = []

        agent = self.repository.create(obj_in=data)
        await self.log_action("create_agent", "agent", str(agent.id), context.principal.actor)
        return agent

    async def update_agent(self, context: TenantContext, agent_id: UUID, agent_data: AgentUpdate) -> Agent:
        agent = await self.get_agent(context, agent_id)

        update_data = agent_data.model_dump(exclude_unset=True)
        self._check_unique(
            agent.organization_id,
            update_data.get("external_id"),
            update_data.get("email"),
            exclude_id=agent.id
        )
        if "status" in update_data and update_data["status"] is not None:
            update_data["status"] = update_data["status"].value
        if "metadata" in update_data:
            update_data["agent_metadata"] = update_data.pop("metadata")

        agent = self.repository.update(db_obj=agent, obj_in=update_data)
        await self.log_action("update_agent", "agent", str(agent_id), context.principal.actor, update_data)
        return agent

    async def delete_agent(self, context: TenantContext, agent_id: UUID) -> Agent:
        """Soft delete; transcripts and rollups keep referring to the agent"""
        agent = await self.get_agent(context, agent_id)
        agent = self.repository.update(db_obj=agent, obj_in={"status": "inactive"})
        await self.log_action("delete_agent", "agent", str(agent_id), context.principal.actor)
        return agent
