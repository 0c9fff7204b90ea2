"""
Authentication API endpoints
"""
from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session
import logging

from .deps import get_db, get_current_principal, require_master_admin, get_email_service
from ..core.rbac import Principal
from ..core.exceptions import AuthenticationError
from ..services.auth_service import AuthService
from ..services.user_service import UserService
from ..services.email_service import EmailService
from ..schemas.auth import (
    LoginRequest, LoginResponse, MeResponse, RegisterRequest,
    ChangePasswordRequest, ForgotPasswordRequest, ResetPasswordRequest
)
from ..schemas.user import UserResponse
from ..schemas.base import MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

RESET_REQUESTED_MESSAGE = "If an account exists for this email, a password reset link has been sent"


@router.post("/login", response_model=LoginResponse)
async def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    """Exchange email and password for an access token"""
    service = AuthService(db)
    result = await service.login(credentials.email, credentials.password)
    return LoginResponse(
        token=result["token"],
        user=UserResponse.model_validate(result["user"]),
        organization=result["organization"]
    )


@router.post("/register", response_model=UserResponse, status_code=201)
async def register(
    user_data: RegisterRequest,
    principal: Principal = Depends(require_master_admin),
    db: Session = Depends(get_db)
):
    """Create a user in any organization"""
    service = UserService(db)
    return await service.create_user(user_data, user_data.organization_id, principal.actor)


@router.get("/me", response_model=MeResponse)
async def get_me(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    service = AuthService(db)
    result = await service.get_me(principal)
    return MeResponse(user=UserResponse.model_validate(result["user"]), organization=result["organization"])


@router.put("/change-password", response_model=MessageResponse)
async def change_password(
    data: ChangePasswordRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    if principal.user_id is None:
        raise AuthenticationError("A user token is required")
    service = AuthService(db)
    await service.change_password(principal.user_id, data.current_password, data.new_password)
    return MessageResponse(message="Password updated successfully")


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    data: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service)
):
    """Start a password reset; the answer does not reveal whether the email exists"""
    service = AuthService(db)
    token = await service.request_password_reset(data.email)
    if token:
        background_tasks.add_task(email_service.send_password_reset_email, data.email.strip().lower(), token)
    return MessageResponse(message=RESET_REQUESTED_MESSAGE)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(data: ResetPasswordRequest, db: Session = Depends(get_db)):
    service = AuthService(db)
    await service.reset_password(data.token, data.new_password)
    return MessageResponse(message="Password has been reset successfully")
