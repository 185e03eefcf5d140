"""Per-church catalog of ministerial positions."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from app.auth.tenancy import (
    Principal,
    apply_tenant_filter,
    get_owned_or_404,
    resolve_church_id,
)
from app.common.models import Church, Member, MinisterialPosition
from app.core.errors import ConflictError, NotFoundError
from app.positions.schemas import PositionCreateRequest, PositionUpdateRequest
from app.stats import hooks as stats_hooks
from app.stats import outbox as stats_outbox

logger = logging.getLogger(__name__)

DEFAULT_POSITIONS = (
    ("Pastor", "Pastor de la iglesia"),
    ("Predicador Ordenado", "Predicador con ordenación"),
    ("Predicador No Ordenado", "Predicador sin ordenación"),
    ("Diácono Ordenado", "Diácono con ordenación"),
    ("Diácono No Ordenado", "Diácono sin ordenación"),
    ("Líder de Alabanza", "Dirige la alabanza en los cultos"),
    ("Maestro de Escuela Dominical", "Enseña en la escuela dominical"),
)


def _name_taken(db: Session, church_id: int, name: str, exclude_id: int | None = None) -> bool:
    stmt = select(MinisterialPosition.id).where(
        MinisterialPosition.church_id == church_id,
        MinisterialPosition.name == name,
    )
    if exclude_id is not None:
        stmt = stmt.where(MinisterialPosition.id != exclude_id)
    return db.execute(stmt).first() is not None


class PositionService:
    @staticmethod
    def list_positions(
        db: Session, principal: Principal, include_inactive: bool = False
    ) -> list[MinisterialPosition]:
        stmt = apply_tenant_filter(
            select(MinisterialPosition), principal, MinisterialPosition.church_id
        )
        if not include_inactive:
            stmt = stmt.where(MinisterialPosition.is_active.is_(True))
        stmt = stmt.order_by(MinisterialPosition.church_id, MinisterialPosition.name)
        return list(db.execute(stmt).scalars().all())

    @staticmethod
    def create_position(
        db: Session, principal: Principal, data: PositionCreateRequest
    ) -> MinisterialPosition:
        church_id = resolve_church_id(principal, data.church_id)
        if db.get(Church, church_id) is None:
            raise NotFoundError("Church", church_id)
        name = data.name.strip()
        if _name_taken(db, church_id, name):
            raise ConflictError(f"Position '{name}' already exists")

        position = MinisterialPosition(
            church_id=church_id, name=name, description=data.description, is_active=True
        )
        db.add(position)
        db.commit()
        db.refresh(position)
        logger.info(f"Created position {position.id} ({name}) in church {church_id}")
        return position

    @staticmethod
    def update_position(
        db: Session, principal: Principal, position_id: int, data: PositionUpdateRequest
    ) -> tuple[MinisterialPosition, int, dict[str, Any]]:
        """Update a position; a rename is propagated to its members' church_role."""
        position = get_owned_or_404(
            db, MinisterialPosition, position_id, principal, "Ministerial position"
        )
        fields = data.model_dump(exclude_unset=True)

        renamed = 0
        tasks = []
        new_name = (fields.pop("name", None) or position.name).strip()
        if new_name != position.name:
            if _name_taken(db, position.church_id, new_name, exclude_id=position.id):
                raise ConflictError(f"Position '{new_name}' already exists")
            renamed = db.execute(
                update(Member)
                .where(Member.position_id == position.id)
                .values(church_role=new_name)
            ).rowcount
            position.name = new_name
            if renamed:
                tasks = stats_hooks.position_roles_changed(db, position.church_id)

        if "description" in fields:
            position.description = fields["description"]
        if fields.get("is_active") is not None:
            position.is_active = fields["is_active"]

        db.commit()
        db.refresh(position)
        stats = stats_outbox.run_tasks(db, tasks)
        return position, renamed, stats

    @staticmethod
    def delete_position(
        db: Session, principal: Principal, position_id: int
    ) -> tuple[bool, dict[str, Any]]:
        """Delete a position, or deactivate it while members still reference it.

        Returns (deactivated, stats).
        """
        position = get_owned_or_404(
            db, MinisterialPosition, position_id, principal, "Ministerial position"
        )
        in_use = db.execute(
            select(func.count(Member.id)).where(Member.position_id == position.id)
        ).scalar_one()

        if in_use:
            position.is_active = False
            db.commit()
            logger.info(f"Deactivated position {position_id}; {in_use} members reference it")
            return True, {}

        tasks = stats_hooks.position_roles_changed(db, position.church_id)
        db.delete(position)
        db.commit()
        logger.info(f"Deleted position {position_id}")
        return False, stats_outbox.run_tasks(db, tasks)

    @staticmethod
    def seed_defaults(
        db: Session, principal: Principal, church_id: int | None = None
    ) -> list[MinisterialPosition]:
        """Create whichever default positions the church is missing."""
        church_id = resolve_church_id(principal, church_id)
        if db.get(Church, church_id) is None:
            raise NotFoundError("Church", church_id)

        existing = set(
            db.execute(
                select(MinisterialPosition.name).where(
                    MinisterialPosition.church_id == church_id
                )
            ).scalars()
        )
        created = [
            MinisterialPosition(church_id=church_id, name=name, description=description)
            for name, description in DEFAULT_POSITIONS
            if name not in existing
        ]
        db.add_all(created)
        db.commit()
        for position in created:
            db.refresh(position)
        logger.info(f"Seeded {len(created)} default positions for church {church_id}")
        return created
