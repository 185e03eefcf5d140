"""User administration routes (Administrador and SuperAdmin)."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.auth.dependencies import require_roles
from app.auth.tenancy import Principal
from app.common.db import get_db
from app.common.pagination import Page, PageParams, page_params
from app.core.roles import ADMIN_ONLY
from app.users import schemas
from app.users.service import UserService

router = APIRouter(prefix="/users", tags=["users"])

admins = require_roles(*ADMIN_ONLY)


@router.get("/roles", response_model=list[schemas.RoleResponse])
def list_roles(
    principal: Principal = Depends(admins),
    db: Session = Depends(get_db),
):
    return UserService.list_roles(db)


@router.get("", response_model=Page[schemas.UserResponse])
def list_users(
    search: Optional[str] = Query(None),
    role_id: Optional[int] = Query(None),
    is_active: Optional[bool] = Query(None),
    params: PageParams = Depends(page_params),
    principal: Principal = Depends(admins),
    db: Session = Depends(get_db),
):
    users, pagination = UserService.list_users(
        db, principal, params, search=search or None, role_id=role_id, is_active=is_active
    )
    return {"items": users, "pagination": pagination}


@router.get("/{user_id}", response_model=schemas.UserResponse)
def get_user(
    user_id: int,
    principal: Principal = Depends(admins),
    db: Session = Depends(get_db),
):
    return UserService.get_user(db, principal, user_id)


@router.post("", response_model=schemas.UserMutationResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    request: schemas.UserCreateRequest,
    principal: Principal = Depends(admins),
    db: Session = Depends(get_db),
):
    user = UserService.create_user(db, principal, request)
    return schemas.UserMutationResponse(message="User created", user=user)


@router.put("/{user_id}", response_model=schemas.UserMutationResponse)
def update_user(
    user_id: int,
    request: schemas.UserUpdateRequest,
    principal: Principal = Depends(admins),
    db: Session = Depends(get_db),
):
    user = UserService.update_user(db, principal, user_id, request)
    return schemas.UserMutationResponse(message="User updated", user=user)


@router.delete("/{user_id}", response_model=schemas.MessageResponse)
def delete_user(
    user_id: int,
    principal: Principal = Depends(admins),
    db: Session = Depends(get_db),
):
    UserService.delete_user(db, principal, user_id)
    return schemas.MessageResponse(message="User deleted")
