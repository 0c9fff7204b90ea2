"""
Authentication middleware
"""
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
import logging

from ..core.security import decode_access_token
from ..core.exceptions import AuthenticationError
from ..core.config import settings

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-api-key"


class AuthMiddleware(BaseHTTPMiddleware):
    """Rejects unauthenticated requests and decodes bearer tokens.

    API keys are only checked for presence here; they need a database
    lookup, which the request dependencies do.
    """

    PUBLIC_PATHS = [
        "/health",
        "/docs",
        "/redoc",
        "/openapi.json",
    ]

    PUBLIC_API_PATHS = [
        "/version",
        "/auth/login",
        "/auth/forgot-password",
        "/auth/reset-password",
    ]

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS" or self._is_exempt(request.url.path):
            return await call_next(request)

        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            token = auth_header.split(" ", 1)[1].strip()
            try:
                request.state.token_payload = decode_access_token(token)
            except AuthenticationError as e:
                return JSONResponse(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    content={"error": e.error_code, "message": e.message, "details": {}}
                )
            return await call_next(request)

        if request.headers.get(API_KEY_HEADER):
            return await call_next(request)

        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={
                "error": "AUTHENTICATION_ERROR",
                "message": "Missing bearer token or API key",
                "details": {}
            }
        )

    def _is_exempt(self, path: str) -> bool:
        if any(path.startswith(exempt) for exempt in self.PUBLIC_PATHS):
            return True
        return any(path == f"{settings.api_prefix}{exempt}" for exempt in self.PUBLIC_API_PATHS)
