"""User administration service.

Administrators manage the accounts of their own church; SuperAdmin manages
every account and is the only role that may grant SuperAdmin.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import delete, or_, select
from sqlalchemy.orm import Session

from app.auth.tenancy import Principal, apply_tenant_filter, ensure_church_access
from app.auth.utils import hash_password
from app.common.models import Church, PasswordResetCode, Role, User
from app.common.pagination import PageParams, Pagination, paginate
from app.core.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
)
from app.core.roles import RoleName
from app.users.schemas import UserCreateRequest, UserResponse, UserUpdateRequest

logger = logging.getLogger(__name__)


def to_response(db: Session, user: User) -> UserResponse:
    role = db.get(Role, user.role_id)
    church = db.get(Church, user.church_id) if user.church_id else None
    return UserResponse(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        role_id=user.role_id,
        role_name=role.name if role else None,
        church_id=user.church_id,
        church_name=church.name if church else None,
        is_active=user.is_active,
        last_login=user.last_login,
        created_at=user.created_at,
    )


def _check_role(db: Session, principal: Principal, role_id: int) -> Role:
    role = db.get(Role, role_id)
    if role is None:
        raise BadRequestError("Invalid role")
    if role.name == RoleName.SUPER_ADMIN.value and not principal.has_cross_tenant_bypass:
        raise ForbiddenError("Only a SuperAdmin can assign the SuperAdmin role")
    return role


def _check_email_free(db: Session, email: str, exclude_id: Optional[int] = None) -> None:
    stmt = select(User.id).where(User.email == email)
    if exclude_id is not None:
        stmt = stmt.where(User.id != exclude_id)
    if db.execute(stmt).first():
        raise ConflictError("Email already registered")


def _resolve_church(db: Session, principal: Principal, church_id: Optional[int]) -> Optional[int]:
    if not principal.has_cross_tenant_bypass:
        church_id = principal.church_id if church_id is None else church_id
        ensure_church_access(principal, church_id)
    if church_id is not None and db.get(Church, church_id) is None:
        raise NotFoundError("Church", church_id)
    return church_id


def _get_user(db: Session, principal: Principal, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    ensure_church_access(principal, user.church_id)
    return user


class UserService:
    @staticmethod
    def list_roles(db: Session) -> list[Role]:
        return list(db.execute(select(Role).order_by(Role.id)).scalars().all())

    @staticmethod
    def list_users(
        db: Session,
        principal: Principal,
        params: PageParams,
        search: Optional[str] = None,
        role_id: Optional[int] = None,
        is_active: Optional[bool] = None,
    ) -> tuple[list[UserResponse], Pagination]:
        stmt = apply_tenant_filter(select(User), principal, User.church_id)
        if search:
            pattern = f"%{search.lower()}%"
            stmt = stmt.where(
                or_(User.full_name.ilike(pattern), User.email.ilike(pattern))
            )
        if role_id is not None:
            stmt = stmt.where(User.role_id == role_id)
        if is_active is not None:
            stmt = stmt.where(User.is_active == is_active)
        stmt = stmt.order_by(User.full_name, User.id)

        users, pagination = paginate(db, stmt, params)
        return [to_response(db, user) for user in users], pagination

    @staticmethod
    def get_user(db: Session, principal: Principal, user_id: int) -> UserResponse:
        return to_response(db, _get_user(db, principal, user_id))

    @staticmethod
    def create_user(db: Session, principal: Principal, data: UserCreateRequest) -> UserResponse:
        email = data.email.lower()
        _check_email_free(db, email)
        role = _check_role(db, principal, data.role_id)
        church_id = _resolve_church(db, principal, data.church_id)
        if church_id is None and role.name != RoleName.SUPER_ADMIN.value:
            raise BadRequestError("church_id is required")

        user = User(
            email=email,
            password_hash=hash_password(data.password),
            full_name=data.full_name,
            role_id=role.id,
            church_id=church_id,
            is_active=data.is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info(f"User {principal.id} created user {user.id} with role {role.name}")
        return to_response(db, user)

    @staticmethod
    def update_user(
        db: Session, principal: Principal, user_id: int, data: UserUpdateRequest
    ) -> UserResponse:
        user = _get_user(db, principal, user_id)
        fields = data.model_dump(exclude_unset=True)

        if fields.get("email"):
            email = fields["email"].lower()
            _check_email_free(db, email, exclude_id=user.id)
            user.email = email
        if fields.get("full_name"):
            user.full_name = fields["full_name"]
        if fields.get("role_id") is not None:
            user.role_id = _check_role(db, principal, fields["role_id"]).id
        if "church_id" in fields:
            user.church_id = _resolve_church(db, principal, fields["church_id"])
        if fields.get("is_active") is not None:
            user.is_active = fields["is_active"]
        if fields.get("password"):
            user.password_hash = hash_password(fields["password"])

        db.commit()
        db.refresh(user)
        logger.info(f"User {principal.id} updated user {user.id}")
        return to_response(db, user)

    @staticmethod
    def delete_user(db: Session, principal: Principal, user_id: int) -> None:
        user = _get_user(db, principal, user_id)
        if user.id == principal.id:
            raise BadRequestError("You cannot delete your own account")
        db.execute(delete(PasswordResetCode).where(PasswordResetCode.user_id == user.id))
        db.delete(user)
        db.commit()
        logger.info(f"User {principal.id} deleted user {user_id}")
