from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.auth.schemas import RegisterRequest, UserInfoResponse
from app.auth.tenancy import Principal, ensure_church_access
from app.auth.utils import (
    create_access_token,
    generate_reset_code,
    hash_password,
    hash_reset_code,
    verify_password,
)
from app.common.models import Church, PasswordResetCode, Role, User, utcnow
from app.core.config import settings
from app.core.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
)
from app.core.roles import RoleName

logger = logging.getLogger(__name__)


def get_role_by_name(db: Session, name: RoleName) -> Role:
    role = db.execute(select(Role).where(Role.name == name.value)).scalar_one_or_none()
    if not role:
        raise BadRequestError(f"Role {name.value} is not configured")
    return role


def user_info(db: Session, user: User) -> UserInfoResponse:
    role = db.get(Role, user.role_id)
    church = db.get(Church, user.church_id) if user.church_id else None
    return UserInfoResponse(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        role_id=user.role_id,
        role_name=role.name if role else None,
        church_id=user.church_id,
        church_name=church.name if church else None,
        is_active=user.is_active,
        last_login=user.last_login,
    )


class AuthService:
    @staticmethod
    def register(
        db: Session, data: RegisterRequest, caller: Optional[Principal] = None
    ) -> User:
        """Create an account.

        Anonymous sign-ups always get the Visitante role; ``role_id`` is
        honoured only for an authenticated Administrador or SuperAdmin.
        """
        email = data.email.lower()
        if db.execute(select(User.id).where(User.email == email)).first():
            raise ConflictError("Email already registered")

        is_admin_caller = caller is not None and (
            caller.has_cross_tenant_bypass or caller.role == RoleName.ADMIN
        )

        church_id = data.church_id
        if is_admin_caller and not caller.has_cross_tenant_bypass:
            if church_id is None:
                church_id = caller.church_id
            ensure_church_access(caller, church_id)
        if church_id is not None and db.get(Church, church_id) is None:
            raise NotFoundError("Church", church_id)

        if is_admin_caller and data.role_id is not None:
            role = db.get(Role, data.role_id)
            if not role:
                raise BadRequestError("Invalid role")
            if role.name == RoleName.SUPER_ADMIN.value and not caller.has_cross_tenant_bypass:
                raise ForbiddenError("Only a SuperAdmin can assign the SuperAdmin role")
        else:
            role = get_role_by_name(db, RoleName.VISITOR)

        if church_id is None and role.name != RoleName.SUPER_ADMIN.value:
            raise BadRequestError("church_id is required")

        user = User(
            email=email,
            password_hash=hash_password(data.password),
            full_name=data.full_name,
            role_id=role.id,
            church_id=church_id,
            is_active=True,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info(f"Registered user {user.id} with role {role.name}")
        return user

    @staticmethod
    def login(db: Session, email: str, password: str) -> tuple[str, User]:
        user = db.execute(
            select(User).where(User.email == email.lower())
        ).scalar_one_or_none()
        if not user or not verify_password(password, user.password_hash):
            raise UnauthorizedError("Invalid email or password")
        if not user.is_active:
            raise UnauthorizedError("Account is inactive")

        user.last_login = utcnow()
        db.commit()
        db.refresh(user)

        token = create_access_token(
            {"id": user.id, "email": user.email, "role_id": user.role_id}
        )
        return token, user

    @staticmethod
    def forgot_password(db: Session, email: str) -> Optional[str]:
        """Issue a reset code. Returns it, or None when the email is unknown."""
        user = db.execute(
            select(User).where(User.email == email.lower(), User.is_active.is_(True))
        ).scalar_one_or_none()
        if not user:
            logger.info("Password reset requested for unknown email")
            return None

        now = utcnow()
        # Earlier unused codes stop working once a new one is issued
        db.execute(
            update(PasswordResetCode)
            .where(
                PasswordResetCode.user_id == user.id,
                PasswordResetCode.used_at.is_(None),
            )
            .values(used_at=now)
        )

        code = generate_reset_code()
        db.add(
            PasswordResetCode(
                user_id=user.id,
                code_hash=hash_reset_code(code),
                expires_at=now + timedelta(minutes=settings.reset_code_ttl_minutes),
            )
        )
        db.commit()
        logger.info(f"Issued password reset code for user {user.id}")
        return code

    @staticmethod
    def reset_password(db: Session, email: str, code: str, new_password: str) -> None:
        user = db.execute(
            select(User).where(User.email == email.lower())
        ).scalar_one_or_none()
        if not user:
            raise BadRequestError("Invalid or expired code")

        reset = db.execute(
            select(PasswordResetCode)
            .where(
                PasswordResetCode.user_id == user.id,
                PasswordResetCode.code_hash == hash_reset_code(code),
                PasswordResetCode.used_at.is_(None),
                PasswordResetCode.expires_at > utcnow(),
            )
            .order_by(PasswordResetCode.id.desc())
        ).scalars().first()
        if not reset:
            raise BadRequestError("Invalid or expired code")

        reset.used_at = utcnow()
        user.password_hash = hash_password(new_password)
        db.commit()
        logger.info(f"Password reset for user {user.id}")

    @staticmethod
    def admin_reset_password(
        db: Session, caller: Principal, user_id: int, new_password: str
    ) -> None:
        user = db.get(User, user_id)
        if not user:
            raise NotFoundError("User", user_id)
        ensure_church_access(caller, user.church_id)

        user.password_hash = hash_password(new_password)
        db.commit()
        logger.info(f"User {caller.id} reset the password of user {user.id}")
