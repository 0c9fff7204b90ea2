# Repository exports
from .base_repository import BaseRepository
from .tenant_repository import OrganizationRepository, ApiKeyRepository
from .user_repository import UserRepository, AgentRepository
from .transcript_repository import TranscriptRepository, CallTypeRepository
from .analytics_repository import AgentPerformanceRepository

__all__ = [
    "BaseRepository",
    "OrganizationRepository",
    "ApiKeyRepository",
    "UserRepository",
    "AgentRepository",
    "TranscriptRepository",
    "CallTypeRepository",
    "AgentPerformanceRepository",
]
