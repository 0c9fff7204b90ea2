# Core module exports
from .config import settings
from .database import get_db, get_db_context, Base
from .exceptions import *  # noqa: F401,F403
from .rbac import Principal, AccessDecision, TenantContext, evaluate_access, RBACManager, UserRole

__all__ = [
    "settings",
    "get_db",
    "get_db_context",
    "Base",
    "Principal",
    "AccessDecision",
    "TenantContext",
    "evaluate_access",
    "RBACManager",
    "UserRole",
]
