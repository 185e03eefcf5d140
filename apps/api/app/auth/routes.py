from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.auth.dependencies import get_current_principal, get_optional_principal, require_roles
from app.auth.schemas import (
    AdminResetPasswordRequest,
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
    UserInfoResponse,
)
from app.auth.service import AuthService, user_info
from app.auth.tenancy import Principal
from app.common.db import get_db
from app.common.models import User
from app.core.config import settings
from app.core.errors import UnauthorizedError
from app.core.roles import ADMIN_ONLY

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserInfoResponse, status_code=status.HTTP_201_CREATED)
def register(
    request: RegisterRequest,
    caller: Optional[Principal] = Depends(get_optional_principal),
    db: Session = Depends(get_db),
):
    user = AuthService.register(db, request, caller)
    return user_info(db, user)


@router.post("/login", response_model=TokenResponse)
def login(request: LoginRequest, db: Session = Depends(get_db)):
    token, user = AuthService.login(db, request.email, request.password)
    return TokenResponse(access_token=token, user=user_info(db, user))


@router.get("/me", response_model=UserInfoResponse)
def get_me(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    user = db.get(User, principal.id)
    if not user:
        raise UnauthorizedError("User not found or inactive")
    return user_info(db, user)


@router.post("/forgot-password", response_model=ForgotPasswordResponse)
def forgot_password(request: ForgotPasswordRequest, db: Session = Depends(get_db)):
    code = AuthService.forgot_password(db, request.email)
    response = ForgotPasswordResponse(
        message="If the email is registered, a reset code has been issued"
    )
    if code and settings.app_env != "production":
        response.code = code
    return response


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(request: ResetPasswordRequest, db: Session = Depends(get_db)):
    AuthService.reset_password(db, request.email, request.code, request.new_password)
    return MessageResponse(message="Password updated")


@router.post("/admin-reset-password/{user_id}", response_model=MessageResponse)
def admin_reset_password(
    user_id: int,
    request: AdminResetPasswordRequest,
    principal: Principal = Depends(require_roles(*ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    AuthService.admin_reset_password(db, principal, user_id, request.new_password)
    return MessageResponse(message="Password updated")
