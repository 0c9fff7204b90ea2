# Middleware exports
from .auth_middleware import AuthMiddleware

__all__ = ["AuthMiddleware"]
