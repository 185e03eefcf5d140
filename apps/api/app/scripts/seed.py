"""Seed the closed set of roles.

Run with ``python -m app.scripts.seed``. Optionally creates a SuperAdmin
account when ``SEED_ADMIN_EMAIL`` and ``SEED_ADMIN_PASSWORD`` are set.
"""

from __future__ import annotations

import os

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.auth.utils import hash_password
from app.common.db import SessionLocal
from app.common.models import Role, User
from app.core.roles import ROLE_DESCRIPTIONS, RoleName


def ensure_roles(db: Session) -> dict[str, int]:
    existing = {name: rid for name, rid in db.execute(select(Role.name, Role.id)).all()}
    for role in RoleName:
        if role.value not in existing:
            db.add(Role(name=role.value, description=ROLE_DESCRIPTIONS[role]))
    db.flush()
    return {name: rid for name, rid in db.execute(select(Role.name, Role.id)).all()}


def ensure_super_admin(db: Session, role_ids: dict[str, int], email: str, password: str) -> bool:
    email = email.lower()
    if db.execute(select(User.id).where(User.email == email)).first():
        return False
    db.add(
        User(
            email=email,
            password_hash=hash_password(password),
            full_name="Super Administrador",
            role_id=role_ids[RoleName.SUPER_ADMIN.value],
            church_id=None,
            is_active=True,
        )
    )
    return True


def main():
    with SessionLocal() as db:
        role_ids = ensure_roles(db)
        created_admin = False
        email = os.getenv("SEED_ADMIN_EMAIL")
        password = os.getenv("SEED_ADMIN_PASSWORD")
        if email and password:
            created_admin = ensure_super_admin(db, role_ids, email, password)
        db.commit()
    print(f"Seeded {len(role_ids)} roles" + (" and a SuperAdmin account" if created_admin else ""))


if __name__ == "__main__":
    main()
